from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from stackprobe.detect.base import PriorityClass, Scorecard, major_of, priority_from_label
from stackprobe.types import DetectionContext, DetectionResult, StackCommands


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(1.7, 1.0), (-0.4, 0.0), (0.35, 0.35), (float("nan"), 0.0)],
)
def test_confidence_is_clamped(raw: float, expected: float) -> None:
    assert DetectionResult(detected=True, confidence=raw).confidence == expected


def test_confidence_is_clamped_on_assignment() -> None:
    result = DetectionResult(confidence=0.5)
    result.confidence = 3.0
    assert result.confidence == 1.0


def test_fault_result_is_never_detected() -> None:
    result = DetectionResult.fault("boom")
    assert result.detected is False
    assert result.confidence == 0.0
    assert result.evidence == ["boom"]
    assert result.metadata["fault"] is True


def test_priority_classes_are_totally_ordered() -> None:
    ordered = sorted(PriorityClass, reverse=True)
    assert [p.label for p in ordered] == [
        "meta-framework",
        "framework",
        "css-framework",
        "ecosystem-tool",
        "specialized-language",
        "base-language",
    ]
    assert priority_from_label("css-framework") is PriorityClass.CSS_FRAMEWORK
    with pytest.raises(ValueError):
        priority_from_label("laravel-tool")


def test_scorecard_verdict_applies_excludes_only_when_detected() -> None:
    card = Scorecard()
    card.add(0.2, "weak signal")
    missed = card.verdict(0.3, inclusive=False, excludes=["react"])
    assert missed.detected is False
    assert missed.excludes is None

    card.add(0.9, "strong signal")
    hit = card.verdict(0.3, inclusive=False, excludes=["react"])
    assert hit.detected is True
    assert hit.confidence == 1.0
    assert hit.excludes == ["react"]
    assert hit.evidence == ["weak signal", "strong signal"]


def test_scorecard_inclusive_threshold() -> None:
    card = Scorecard(confidence=0.6)
    assert card.verdict(0.6).detected is True
    assert card.verdict(0.6, inclusive=False).detected is False


def test_major_of() -> None:
    assert major_of("^18.2.0") == "18"
    assert major_of("v11") == "11"
    assert major_of("latest") == "latest"


def test_context_helpers(tmp_path: Path) -> None:
    ctx = DetectionContext(
        project_root=tmp_path,
        config_files=("package.json", "composer.json"),
        files=("app/page.tsx", "src/index.js", "tests/Feature/ExampleTest.php"),
        package_json={"dependencies": {"react": "^18.0.0"}, "devDependencies": {"vite": "^5.0.0"}, "scripts": {"dev": "vite"}},
        composer_json={"require": {"php": "^8.2"}, "require-dev": {"pestphp/pest": "^2.0"}},
    )
    assert ctx.has_config("composer.json")
    assert not ctx.has_config("artisan")
    assert ctx.npm_dependency("vite") == "^5.0.0"
    assert ctx.has_npm("missing", "react")
    assert ctx.npm_dependencies() == {"react", "vite"}
    assert ctx.npm_scripts() == {"dev": "vite"}
    assert ctx.files_with_suffix(".tsx", ".js") == ["app/page.tsx", "src/index.js"]
    assert ctx.files_under("tests") == ["tests/Feature/ExampleTest.php"]
    assert ctx.composer_dependency("pestphp/pest") == "^2.0"
    assert ctx.composer_requires("php")
    assert not ctx.composer_requires("pestphp/pest")


def test_context_is_frozen(tmp_path: Path) -> None:
    ctx = DetectionContext(project_root=tmp_path)
    with pytest.raises(ValidationError):
        ctx.files = ("x",)  # type: ignore[misc]


def test_context_manifests_are_read_only(tmp_path: Path) -> None:
    manifest = {"dependencies": {"react": "^18.0.0"}, "workspaces": ["packages/a"]}
    ctx = DetectionContext(project_root=tmp_path, package_json=manifest)

    with pytest.raises(TypeError):
        ctx.package_json["name"] = "web"  # type: ignore[index]
    with pytest.raises(TypeError):
        ctx.package_json["dependencies"]["react"] = "^19.0.0"  # type: ignore[index]
    assert ctx.package_json["workspaces"] == ("packages/a",)

    manifest["dependencies"]["vue"] = "^3.0.0"
    assert ctx.npm_dependencies() == {"react"}
    assert ctx.npm_dependency("react") == "^18.0.0"


def test_stack_commands_is_empty() -> None:
    assert StackCommands().is_empty()
    assert not StackCommands(lint=("npm run lint",)).is_empty()
