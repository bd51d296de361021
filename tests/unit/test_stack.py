from __future__ import annotations

import threading
import time

import pytest

from stackprobe.config import DetectionSettings, ProbeSettings, ScanSettings
from stackprobe.detect.base import Detector
from stackprobe.detect.registry import DetectorRegistration, DetectorRegistry
from stackprobe.detect.stack import (
    StackDetector,
    detect_package_managers,
    detect_runtime,
    preferred_js_manager,
)
from stackprobe.modules.languages import JavaScriptDetector
from stackprobe.modules.laravel import BOOST_EXCLUDES
from stackprobe.types import DetectionContext, DetectionResult, NormalizedStack

NEXT_PROJECT = {
    "package.json": {
        "dependencies": {"next": "^14.1.0", "react": "^18.2.0", "react-dom": "^18.2.0"},
        "scripts": {"dev": "next dev", "build": "next build", "lint": "next lint"},
    },
    "next.config.js": "module.exports = {}\n",
    "app/page.tsx": "export default function Page() { return null }\n",
    "app/layout.tsx": "export default function Layout({ children }) { return children }\n",
    "package-lock.json": "{}",
}

BOOST_PROJECT = {
    "composer.json": {
        "require": {"laravel/framework": "^11.0"},
        "require-dev": {"laravel/pint": "^1.13", "pestphp/pest": "^2.34"},
    },
    "artisan": "#!/usr/bin/env php\n",
    "boost.config.php": "<?php return [];\n",
    "package.json": {"devDependencies": {"tailwindcss": "^3.4.1"}},
    "tailwind.config.js": "module.exports = {}\n",
}


def test_next_project(make_project) -> None:
    report = StackDetector(make_project(NEXT_PROJECT)).detect_report()
    stack = report.stack

    assert stack.runtime == "node"
    assert stack.frameworks == ("Next.js",)
    assert stack.languages == ("JavaScript",)
    assert stack.package_managers == ("npm",)
    assert "next.config.js" in stack.config_files
    assert report.excluded == {"react": "next"}
    assert "react" not in report.results

    assert stack.commands.install == ("npm install",)
    assert stack.commands.dev == ("npm run dev", "npm run start")
    assert stack.commands.build == ("npm run build",)
    assert stack.commands.lint == ("npm run lint",)

    assert report.versions == {"next": "14", "javascript": None}
    assert report.guidelines[0].path == "next/guidelines/framework.md"
    assert report.faults == {}


def test_empty_project_is_generic(tmp_path) -> None:
    stack = StackDetector(tmp_path).detect()

    assert stack == NormalizedStack()
    assert stack.runtime == "generic"
    assert stack.commands.is_empty()


def test_laravel_boost_project(make_project) -> None:
    report = StackDetector(make_project(BOOST_PROJECT)).detect_report()
    stack = report.stack

    assert list(report.results) == ["laravel-boost", "php", "javascript"]
    assert stack.frameworks == ("Laravel Boost",)
    assert stack.languages == ("PHP", "JavaScript")
    assert stack.runtime == "node"
    assert stack.package_managers == ()
    for detector_id in ("laravel", "tailwind", "pest", "pint"):
        assert report.excluded[detector_id] == "laravel-boost"
    assert set(report.excluded) == set(BOOST_EXCLUDES)

    assert stack.commands.lint == ("./vendor/bin/pint",)
    assert stack.commands.install == ("composer install", "npm install")
    assert stack.commands.dev == ("php artisan serve",)


def test_detection_is_deterministic(make_project) -> None:
    root = make_project(BOOST_PROJECT)
    first = StackDetector(root).detect_report()
    second = StackDetector(root).detect_report()

    assert first.stack == second.stack
    assert first.excluded == second.excluded
    assert list(first.results) == list(second.results)


def test_bun_lockfile_selects_bun(make_project) -> None:
    stack = StackDetector(
        make_project({"package.json": {"scripts": {"dev": "bun run index.ts"}}, "bun.lockb": "", "index.js": ""})
    ).detect()

    assert stack.runtime == "bun"
    assert stack.package_managers == ("bun",)
    assert stack.commands.install == ("bun install",)
    assert stack.commands.dev == ("bun run dev",)


def test_python_project(make_project) -> None:
    stack = StackDetector(
        make_project({"pyproject.toml": "[project]\nname = 'svc'\n", "poetry.lock": "", "src/svc.py": ""})
    ).detect()

    assert stack.runtime == "python"
    assert stack.languages == ("Python",)
    assert stack.frameworks == ()
    assert stack.package_managers == ("poetry",)
    assert stack.commands.install == ("poetry install",)
    assert stack.commands.test == ("pytest",)


def test_disabled_detector_is_not_run(make_project) -> None:
    registry = DetectorRegistry()
    registry.discover()
    registry.disable("next")

    report = StackDetector(make_project(NEXT_PROJECT), registry=registry).detect_report()

    assert report.stack.frameworks == ("React",)
    assert report.excluded == {}
    assert "next" not in report.results


class ExplodingDetector(Detector):
    id = "exploding"

    def detect(self, context: DetectionContext) -> DetectionResult:
        raise RuntimeError("boom")


def test_faulty_detector_does_not_break_the_pass(make_project) -> None:
    registry = DetectorRegistry()
    registry.register(DetectorRegistration(id="exploding", factory=ExplodingDetector))
    registry.register(DetectorRegistration(id="javascript", factory=JavaScriptDetector))

    report = StackDetector(make_project({"package.json": {"name": "web"}}), registry=registry).detect_report()

    assert "exploding" in report.faults
    assert report.stack.languages == ("JavaScript",)
    assert report.stack.runtime == "node"


class HangingDetector(Detector):
    id = "hanging"

    def __init__(self, config: dict | None = None, release: threading.Event | None = None) -> None:
        super().__init__(config)
        self.release = release or threading.Event()

    def detect(self, context: DetectionContext) -> DetectionResult:
        self.release.wait()
        return DetectionResult(detected=True, confidence=1.0)


@pytest.mark.timeout(20)
def test_hung_detector_does_not_hold_the_pass(make_project) -> None:
    release = threading.Event()
    registry = DetectorRegistry()
    registry.register(DetectorRegistration(id="hanging", factory=lambda config: HangingDetector(config, release)))
    registry.register(DetectorRegistration(id="javascript", factory=JavaScriptDetector))
    settings = ProbeSettings(detection=DetectionSettings(timeout_seconds=0.2))
    root = make_project({"package.json": {"name": "web"}})

    started = time.monotonic()
    try:
        report = StackDetector(root, registry=registry, settings=settings).detect_report()
        elapsed = time.monotonic() - started
    finally:
        release.set()

    assert elapsed < 3
    assert report.faults["hanging"] == "timed out after 0.2s"
    assert "hanging" not in report.results
    assert report.stack.languages == ("JavaScript",)


def test_scan_settings_are_applied(make_project) -> None:
    root = make_project({f"deep/a/b/c/file{i}.go": "package main\n" for i in range(7)})
    settings = ProbeSettings(scan=ScanSettings(max_depth=2))

    assert StackDetector(root).detect().languages == ("Go",)
    assert StackDetector(root, settings=settings).detect().languages == ()


@pytest.mark.parametrize(
    ("config_files", "expected"),
    [
        (("package-lock.json", "composer.lock"), ("npm", "composer")),
        (("bun.lockb", "bun.lock"), ("bun",)),
        (("poetry.lock", "yarn.lock"), ("yarn", "poetry")),
        ((), ()),
    ],
)
def test_detect_package_managers(config_files, expected) -> None:
    assert detect_package_managers(config_files) == expected


def test_runtime_and_manager_preference() -> None:
    assert detect_runtime(["php", "javascript"], ()) == "node"
    assert detect_runtime(["php"], ("composer",)) == "php"
    assert detect_runtime(["javascript"], ("bun",)) == "bun"
    assert detect_runtime([], ()) == "generic"

    assert preferred_js_manager(("npm", "yarn")) == "yarn"
    assert preferred_js_manager(("composer",)) == "npm"
