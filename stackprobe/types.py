"""Shared Pydantic models for detection passes."""

from __future__ import annotations

import math
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

COMMAND_CATEGORIES: tuple[str, ...] = ("dev", "build", "test", "lint", "install")

GuidelineCategory = Literal["framework", "language", "feature", "testing"]


class DetectionContext(BaseModel):
    """Read-only snapshot of a project shared by every detector in a pass.

    Attributes
    ----------
    project_root: Path
        Absolute project directory.
    config_files: tuple[str, ...]
        Root-level config/lock filenames confirmed present.
    files: tuple[str, ...]
        Sorted POSIX paths relative to the root, from a bounded scan.
    package_json / composer_json: Mapping | None
        Parsed manifests, deep-frozen (read-only mappings, tuples), or None
        when missing or malformed.
    """

    model_config = ConfigDict(frozen=True)

    project_root: Path
    config_files: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    package_json: Mapping[str, Any] | None = None
    composer_json: Mapping[str, Any] | None = None

    @field_validator("package_json", "composer_json")
    @classmethod
    def _freeze_manifest(cls, value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return None if value is None else freeze(value)

    def has_config(self, *names: str) -> bool:
        return any(name in self.config_files for name in names)

    def has_file(self, *paths: str) -> bool:
        return any(path in self.files for path in paths)

    def files_with_suffix(self, *suffixes: str) -> list[str]:
        return [f for f in self.files if f.endswith(suffixes)]

    def files_under(self, prefix: str) -> list[str]:
        prefix = prefix.rstrip("/") + "/"
        return [f for f in self.files if f.startswith(prefix)]

    def npm_dependency(self, name: str) -> str | None:
        """Version spec of *name* from dependencies, then devDependencies."""
        return _section_lookup(self.package_json, ("dependencies", "devDependencies"), name)

    def has_npm(self, *names: str) -> bool:
        return any(self.npm_dependency(name) is not None for name in names)

    def npm_dependencies(self) -> set[str]:
        return _section_keys(self.package_json, ("dependencies", "devDependencies"))

    def npm_scripts(self) -> dict[str, str]:
        scripts = (self.package_json or {}).get("scripts") or {}
        if not isinstance(scripts, Mapping):
            return {}
        return {str(k): str(v) for k, v in scripts.items()}

    def composer_dependency(self, name: str) -> str | None:
        """Version constraint of *name* from require, then require-dev."""
        return _section_lookup(self.composer_json, ("require", "require-dev"), name)

    def has_composer(self, *names: str) -> bool:
        return any(self.composer_dependency(name) is not None for name in names)

    def composer_requires(self, name: str) -> bool:
        """True only when *name* is a runtime (non-dev) composer requirement."""
        return _section_lookup(self.composer_json, ("require",), name) is not None


def freeze(value: Any) -> Any:
    """Read-only deep copy of parsed JSON: mappings become proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def _section_lookup(manifest: Mapping | None, sections: tuple[str, ...], name: str) -> str | None:
    if not manifest:
        return None
    for section in sections:
        deps = manifest.get(section) or {}
        if isinstance(deps, Mapping) and name in deps:
            return str(deps[name])
    return None


def _section_keys(manifest: Mapping | None, sections: tuple[str, ...]) -> set[str]:
    keys: set[str] = set()
    for section in sections:
        deps = (manifest or {}).get(section) or {}
        if isinstance(deps, Mapping):
            keys.update(str(k) for k in deps)
    return keys


class DetectionResult(BaseModel):
    """Verdict of one detector for one pass.

    ``confidence`` is clamped to [0, 1] on construction and on assignment.
    ``detected`` is decided by the detector against its own threshold.
    """

    model_config = ConfigDict(validate_assignment=True)

    detected: bool = False
    confidence: float = 0.0
    evidence: list[str] = Field(default_factory=list)
    excludes: list[str] | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("confidence")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        if math.isnan(value):
            return 0.0
        return min(max(value, 0.0), 1.0)

    @classmethod
    def fault(cls, message: str) -> DetectionResult:
        return cls(detected=False, confidence=0.0, evidence=[message], metadata={"fault": True})


class GuidelinePath(BaseModel):
    path: str
    priority: str
    category: GuidelineCategory
    version: str | None = None


class ModuleMetadata(BaseModel):
    name: str
    display_name: str
    description: str
    version: str = "1.0.0"
    author: str | None = None
    homepage: str | None = None
    keywords: list[str] = Field(default_factory=list)
    supported_versions: list[str] = Field(default_factory=list)


class StackCommands(BaseModel):
    model_config = ConfigDict(frozen=True)

    dev: tuple[str, ...] = ()
    build: tuple[str, ...] = ()
    test: tuple[str, ...] = ()
    lint: tuple[str, ...] = ()
    install: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not any(getattr(self, c) for c in COMMAND_CATEGORIES)


class PartialCommands(BaseModel):
    """Commands one detector has an opinion about; ``None`` means no opinion."""

    dev: list[str] | None = None
    build: list[str] | None = None
    test: list[str] | None = None
    lint: list[str] | None = None
    install: list[str] | None = None


class NormalizedStack(BaseModel):
    model_config = ConfigDict(frozen=True)

    runtime: str = "generic"
    languages: tuple[str, ...] = ()
    frameworks: tuple[str, ...] = ()
    package_managers: tuple[str, ...] = ()
    config_files: tuple[str, ...] = ()
    commands: StackCommands = Field(default_factory=StackCommands)


class ModuleContext(BaseModel):
    project_root: Path
    detected_stack: NormalizedStack = Field(default_factory=NormalizedStack)
    detection_result: DetectionResult = Field(default_factory=DetectionResult)
    version: str | None = None
    package_manager: str = "npm"


class VersionInfo(BaseModel):
    raw: str
    major: int
    installed: str | None = None
    source: Literal["dependency", "installed", "both"] = "dependency"


class StackReport(BaseModel):
    """Everything one pass learned; ``stack`` is what consumers normally need."""

    model_config = ConfigDict(frozen=True)

    stack: NormalizedStack
    results: dict[str, DetectionResult] = Field(default_factory=dict)
    versions: dict[str, str | None] = Field(default_factory=dict)
    guidelines: list[GuidelinePath] = Field(default_factory=list)
    excluded: dict[str, str] = Field(default_factory=dict)
    faults: dict[str, str] = Field(default_factory=dict)
