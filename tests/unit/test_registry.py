from __future__ import annotations

import json
from pathlib import Path

import pytest

from stackprobe.detect.registry import DetectorRegistration, DetectorRegistry
from stackprobe.errors import ConfigError, RegistrationError
from stackprobe.modules.catalog import BUILTIN_DETECTORS
from stackprobe.modules.frontend import ReactDetector


@pytest.fixture
def registry() -> DetectorRegistry:
    reg = DetectorRegistry()
    reg.discover()
    return reg


def test_discover_registers_catalog_in_order(registry: DetectorRegistry) -> None:
    ids = [r.id for r in registry.get_all_registrations()]
    assert ids == [detector_id for detector_id, _ in BUILTIN_DETECTORS]
    assert ids.index("laravel-boost") < ids.index("laravel")
    assert registry.count() == registry.enabled_count() == len(BUILTIN_DETECTORS)


def test_discover_is_idempotent(registry: DetectorRegistry) -> None:
    assert registry.discover() == []
    assert registry.count() == len(BUILTIN_DETECTORS)


def test_catalog_ids_match_detector_ids() -> None:
    for detector_id, factory in BUILTIN_DETECTORS:
        assert factory({}).id == detector_id


def test_duplicate_registration_raises(registry: DetectorRegistry) -> None:
    with pytest.raises(RegistrationError):
        registry.register(DetectorRegistration(id="react", factory=ReactDetector))


def test_enable_and_disable_replace_registrations(registry: DetectorRegistry) -> None:
    before = registry.get_registration("react")
    assert registry.disable("react")
    after = registry.get_registration("react")

    assert before is not after
    assert before.enabled is True
    assert after.enabled is False
    assert not registry.is_enabled("react")
    assert "react" not in [r.id for r in registry.get_enabled_registrations()]

    assert registry.enable("react")
    assert registry.is_enabled("react")
    assert registry.disable("nope") is False


def test_unregister_and_clear(registry: DetectorRegistry) -> None:
    assert registry.unregister("vue")
    assert not registry.is_registered("vue")
    assert registry.unregister("vue") is False
    registry.clear()
    assert registry.count() == 0


def test_load_from_config(registry: DetectorRegistry, tmp_path: Path) -> None:
    (tmp_path / ".stackprobe.json").write_text(
        json.dumps(
            {
                "modules": [
                    "react",
                    {"id": "bootstrap", "enabled": False},
                    {"name": "tailwind", "config": {"strict": True}},
                    {"id": "angular", "enabled": True},
                ]
            }
        ),
        encoding="utf-8",
    )
    applied = registry.load_from_config(tmp_path)

    assert applied == 3
    assert registry.is_enabled("react")
    assert not registry.is_enabled("bootstrap")
    assert registry.get_registration("tailwind").config == {"strict": True}
    assert not registry.is_registered("angular")
    # the factory receives the configured options
    assert registry.get_registration("tailwind").create().config == {"strict": True}


def test_load_from_missing_config_is_a_noop(registry: DetectorRegistry, tmp_path: Path) -> None:
    assert registry.load_from_config(tmp_path) == 0


def test_load_from_invalid_config_raises(registry: DetectorRegistry, tmp_path: Path) -> None:
    (tmp_path / ".stackprobe.json").write_text(json.dumps({"modules": [42]}), encoding="utf-8")
    with pytest.raises(ConfigError):
        registry.load_from_config(tmp_path)


def test_save_to_config_preserves_other_keys(registry: DetectorRegistry, tmp_path: Path) -> None:
    path = tmp_path / ".stackprobe.json"
    path.write_text(json.dumps({"scan": {"maxDepth": 4}}), encoding="utf-8")
    registry.disable("bulma")

    registry.save_to_config(tmp_path)
    data = json.loads(path.read_text(encoding="utf-8"))

    assert data["scan"] == {"maxDepth": 4}
    saved = {entry["id"]: entry["enabled"] for entry in data["modules"]}
    assert saved["bulma"] is False
    assert saved["react"] is True

    fresh = DetectorRegistry()
    fresh.discover()
    fresh.load_from_config(tmp_path)
    assert not fresh.is_enabled("bulma")
