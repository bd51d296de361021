"""Detector registry: the closed catalog plus per-detector enable flags.

Registrations are immutable; enabling or disabling a detector swaps in a new
``DetectorRegistration``. Catalog order is preserved everywhere because the
orchestrator breaks ties by registration order.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from stackprobe.config import read_config_file, resolve_config_path
from stackprobe.detect.base import Detector
from stackprobe.errors import ConfigError, RegistrationError
from stackprobe.logging import get_logger

log = get_logger(__name__)

DetectorFactory = Callable[[dict], Detector]


@dataclass(frozen=True)
class DetectorRegistration:
    id: str
    factory: DetectorFactory
    enabled: bool = True
    config: dict[str, Any] = field(default_factory=dict)

    def create(self) -> Detector:
        return self.factory(dict(self.config))


class DetectorRegistry:
    def __init__(self) -> None:
        self._registrations: dict[str, DetectorRegistration] = {}

    # --- catalog ----------------------------------------------------------

    def discover(self) -> list[DetectorRegistration]:
        """Register every built-in detector not already present, in catalog order."""
        from stackprobe.modules.catalog import BUILTIN_DETECTORS

        added = []
        for detector_id, factory in BUILTIN_DETECTORS:
            if detector_id in self._registrations:
                continue
            added.append(self.register(DetectorRegistration(id=detector_id, factory=factory)))
        log.info("Discovered detectors", extra={"fields": {"count": len(added)}})
        return added

    def register(self, registration: DetectorRegistration) -> DetectorRegistration:
        if registration.id in self._registrations:
            raise RegistrationError(f"Detector {registration.id!r} is already registered")
        self._registrations[registration.id] = registration
        return registration

    def unregister(self, detector_id: str) -> bool:
        return self._registrations.pop(detector_id, None) is not None

    def clear(self) -> None:
        self._registrations.clear()

    # --- queries ----------------------------------------------------------

    def get_registration(self, detector_id: str) -> DetectorRegistration | None:
        return self._registrations.get(detector_id)

    def get_all_registrations(self) -> list[DetectorRegistration]:
        return list(self._registrations.values())

    def get_enabled_registrations(self) -> list[DetectorRegistration]:
        return [r for r in self._registrations.values() if r.enabled]

    def is_registered(self, detector_id: str) -> bool:
        return detector_id in self._registrations

    def is_enabled(self, detector_id: str) -> bool:
        registration = self._registrations.get(detector_id)
        return bool(registration and registration.enabled)

    def count(self) -> int:
        return len(self._registrations)

    def enabled_count(self) -> int:
        return len(self.get_enabled_registrations())

    # --- flags ------------------------------------------------------------

    def enable(self, detector_id: str) -> bool:
        return self._set_enabled(detector_id, True)

    def disable(self, detector_id: str) -> bool:
        return self._set_enabled(detector_id, False)

    def _set_enabled(self, detector_id: str, enabled: bool) -> bool:
        registration = self._registrations.get(detector_id)
        if registration is None:
            return False
        self._registrations[detector_id] = replace(registration, enabled=enabled)
        return True

    # --- config file ------------------------------------------------------

    def load_from_config(self, path: Path) -> int:
        """Apply the ``modules`` entries of a config file; returns how many applied."""
        data = read_config_file(path)
        if data is None:
            return 0
        applied = 0
        for entry in data.get("modules") or []:
            if isinstance(entry, str):
                detector_id, enabled, config = entry, True, None
            else:
                detector_id = entry.get("id") or entry.get("name")
                enabled = entry.get("enabled", True)
                config = entry.get("config")
            registration = self._registrations.get(detector_id)
            if registration is None:
                log.warning("Unknown detector in config", extra={"fields": {"id": detector_id}})
                continue
            changes: dict[str, Any] = {"enabled": enabled}
            if config is not None:
                changes["config"] = dict(config)
            self._registrations[detector_id] = replace(registration, **changes)
            applied += 1
        return applied

    def save_to_config(self, path: Path) -> Path:
        path = resolve_config_path(path)
        existing = read_config_file(path) or {}
        existing["modules"] = [
            {"id": r.id, "enabled": r.enabled, "config": r.config}
            for r in self._registrations.values()
        ]
        try:
            path.write_text(json.dumps(existing, indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot write {path}: {exc}") from exc
        return path
