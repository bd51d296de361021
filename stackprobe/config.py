"""Project configuration: ``.stackprobe.json``.

Example::

    {
      "scan": {"maxDepth": 4, "ignoreDirs": ["fixtures"]},
      "detection": {"timeoutSeconds": 2.5},
      "modules": ["react", {"id": "bootstrap", "enabled": false}]
    }

``scan`` and ``detection`` are read here; ``modules`` is applied by
``DetectorRegistry.load_from_config``.
"""

from __future__ import annotations

import json
from pathlib import Path

from jsonschema import ValidationError
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from stackprobe.errors import ConfigError
from stackprobe.validator import validate_config

CONFIG_FILENAME = ".stackprobe.json"

DEFAULT_IGNORE_DIRS: tuple[str, ...] = (
    "node_modules",
    "vendor",
    "dist",
    "build",
    "out",
    "coverage",
    "target",
    "storage",
    "bootstrap/cache",
    "__pycache__",
    "venv",
)


class ScanSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    max_depth: int = Field(6, alias="maxDepth", ge=1)
    max_files: int = Field(10000, alias="maxFiles", ge=1)
    ignore_dirs: tuple[str, ...] = Field(DEFAULT_IGNORE_DIRS, alias="ignoreDirs")


class DetectionSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timeout_seconds: float = Field(5.0, alias="timeoutSeconds", gt=0)


class ProbeSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    scan: ScanSettings = Field(default_factory=ScanSettings)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)


def resolve_config_path(path: Path) -> Path:
    """*path* itself when it is a file, else ``<path>/.stackprobe.json``."""
    path = Path(path)
    return path if path.is_file() or path.suffix == ".json" else path / CONFIG_FILENAME


def read_config_file(path: Path) -> dict | None:
    """Parsed and schema-checked config, or None when the file does not exist."""
    path = resolve_config_path(path)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    try:
        validate_config(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {path.name}: {exc.message}") from exc
    return data


def load_config(path: Path) -> ProbeSettings:
    data = read_config_file(path)
    if data is None:
        return ProbeSettings()
    scan = data.get("scan") or {}
    if "ignoreDirs" in scan:
        # ignoreDirs extends the built-in list
        scan = {**scan, "ignoreDirs": tuple(DEFAULT_IGNORE_DIRS) + tuple(scan["ignoreDirs"])}
    try:
        return ProbeSettings(
            scan=ScanSettings(**scan),
            detection=DetectionSettings(**(data.get("detection") or {})),
        )
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
