"""Version lookup helpers for npm and composer packages.

The manifest spec ("^18.0.0") is always available when a dependency is
declared; the installed version comes from node_modules / vendor or a lockfile
already present in the project and wins when both exist.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

from stackprobe.logging import get_logger
from stackprobe.types import DetectionContext, VersionInfo

log = get_logger(__name__)

_PREFIX_RE = re.compile(r"^[\s~^>=<v]*")
_DIGITS_RE = re.compile(r"(\d+)")


def normalize_version(spec: str) -> str:
    """Strip range operators: ``"^11.0"`` -> ``"11.0"``."""
    return _PREFIX_RE.sub("", spec).strip()


def major_version(spec: str) -> int | None:
    """First integer in *spec*, or None for specs like ``"*"`` or ``"latest"``."""
    match = _DIGITS_RE.search(normalize_version(spec))
    return int(match.group(1)) if match else None


def _read_json(path: Path) -> dict | list | None:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        log.debug("Unreadable lock data", extra={"fields": {"path": str(path), "error": str(exc)}})
        return None


def npm_installed_version(package: str, root: Path) -> str | None:
    manifest = _read_json(root / "node_modules" / package / "package.json")
    if isinstance(manifest, dict) and manifest.get("version"):
        return str(manifest["version"])

    lock = _read_json(root / "package-lock.json")
    if isinstance(lock, dict):
        entry = (lock.get("packages") or {}).get(f"node_modules/{package}") or (
            lock.get("dependencies") or {}
        ).get(package)
        if isinstance(entry, dict) and entry.get("version"):
            return str(entry["version"])

    try:
        yarn_lock = (root / "yarn.lock").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    match = re.search(
        rf'^"?{re.escape(package)}@[^\n]*:\s*\n\s+version:?\s+"?([^"\s]+)"?',
        yarn_lock,
        re.MULTILINE,
    )
    return match.group(1) if match else None


def composer_installed_version(package: str, root: Path) -> str | None:
    installed = _read_json(root / "vendor" / "composer" / "installed.json")
    if installed is not None:
        packages = installed.get("packages", []) if isinstance(installed, dict) else installed
        return _composer_package_version(packages, package)

    lock = _read_json(root / "composer.lock")
    if isinstance(lock, dict):
        return _composer_package_version(lock.get("packages") or [], package)
    return None


def _composer_package_version(packages: object, package: str) -> str | None:
    if not isinstance(packages, list):
        return None
    for entry in packages:
        if isinstance(entry, dict) and entry.get("name") == package and entry.get("version"):
            return normalize_version(str(entry["version"]))
    return None


def _combine(raw: str, installed: str | None) -> VersionInfo | None:
    spec_major = major_version(raw)
    installed_major = major_version(installed) if installed else None
    major = installed_major if installed_major is not None else spec_major
    if major is None:
        return None
    if installed_major is not None and spec_major is not None:
        source = "both"
    elif installed_major is not None:
        source = "installed"
    else:
        source = "dependency"
    return VersionInfo(raw=raw, major=major, installed=installed, source=source)


def npm_version_info(package: str, context: DetectionContext) -> VersionInfo | None:
    raw = context.npm_dependency(package)
    if raw is None:
        return None
    return _combine(raw, npm_installed_version(package, context.project_root))


def composer_version_info(package: str, context: DetectionContext) -> VersionInfo | None:
    raw = context.composer_dependency(package)
    if raw is None:
        return None
    return _combine(raw, composer_installed_version(package, context.project_root))


def npm_major(package: str, context: DetectionContext) -> str | None:
    info = npm_version_info(package, context)
    return str(info.major) if info else None


def composer_major(package: str, context: DetectionContext) -> str | None:
    info = composer_version_info(package, context)
    return str(info.major) if info else None
