from __future__ import annotations

import json
from pathlib import Path

import pytest

from stackprobe.config import CONFIG_FILENAME, DEFAULT_IGNORE_DIRS, load_config, read_config_file
from stackprobe.errors import ConfigError


def _write_config(root: Path, data: object) -> Path:
    path = root / CONFIG_FILENAME
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


def test_missing_config_gives_defaults(tmp_path: Path) -> None:
    settings = load_config(tmp_path)
    assert settings.scan.max_depth == 6
    assert settings.scan.max_files == 10000
    assert settings.scan.ignore_dirs == DEFAULT_IGNORE_DIRS
    assert settings.detection.timeout_seconds == 5.0
    assert read_config_file(tmp_path) is None


def test_config_values_are_applied(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        {
            "scan": {"maxDepth": 3, "maxFiles": 50, "ignoreDirs": ["fixtures"]},
            "detection": {"timeoutSeconds": 1.5},
            "modules": ["react"],
        },
    )
    settings = load_config(tmp_path)

    assert settings.scan.max_depth == 3
    assert settings.scan.max_files == 50
    # ignoreDirs extends the built-in list
    assert "fixtures" in settings.scan.ignore_dirs
    assert "node_modules" in settings.scan.ignore_dirs
    assert settings.detection.timeout_seconds == 1.5


def test_config_path_may_point_at_a_file(tmp_path: Path) -> None:
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"detection": {"timeoutSeconds": 2}}), encoding="utf-8")
    assert load_config(path).detection.timeout_seconds == 2


def test_invalid_json_raises_config_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "{ nope")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


@pytest.mark.parametrize(
    "data",
    [
        {"scan": {"maxDepth": 0}},
        {"scan": {"unknown": True}},
        {"detection": {"timeoutSeconds": -1}},
        {"modules": [{"enabled": False}]},
    ],
)
def test_schema_violations_raise_config_error(tmp_path: Path, data: dict) -> None:
    _write_config(tmp_path, data)
    with pytest.raises(ConfigError):
        load_config(tmp_path)
