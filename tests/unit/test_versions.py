from __future__ import annotations

import pytest

from stackprobe.detect.versions import (
    composer_installed_version,
    composer_version_info,
    major_version,
    normalize_version,
    npm_installed_version,
    npm_major,
    npm_version_info,
)


@pytest.mark.parametrize(
    ("spec", "expected"),
    [("^18.2.0", 18), ("~5.3", 5), (">=11.0 <12", 11), ("v3.4.1", 3), ("*", None), ("latest", None)],
)
def test_major_version(spec: str, expected: int | None) -> None:
    assert major_version(spec) == expected


def test_normalize_version_strips_range_operators() -> None:
    assert normalize_version("^11.0") == "11.0"
    assert normalize_version(">= 2.1") == "2.1"


def test_npm_installed_version_prefers_node_modules(make_project) -> None:
    root = make_project(
        {
            "node_modules/react/package.json": {"name": "react", "version": "18.3.1"},
            "package-lock.json": {"packages": {"node_modules/react": {"version": "18.2.0"}}},
        }
    )
    assert npm_installed_version("react", root) == "18.3.1"


def test_npm_installed_version_from_lockfiles(make_project) -> None:
    root = make_project(
        {
            "package-lock.json": {"packages": {"node_modules/next": {"version": "14.2.3"}}},
            "yarn.lock": '"react@^18.2.0":\n  version "18.2.0"\n  resolved "https://example.invalid/react.tgz"\n',
        }
    )
    assert npm_installed_version("next", root) == "14.2.3"
    assert npm_installed_version("react", root) == "18.2.0"
    assert npm_installed_version("vue", root) is None


def test_composer_installed_version(make_project) -> None:
    root = make_project(
        {"composer.lock": {"packages": [{"name": "laravel/framework", "version": "v11.9.2"}]}}
    )
    assert composer_installed_version("laravel/framework", root) == "11.9.2"
    assert composer_installed_version("livewire/livewire", root) is None


def test_version_info_sources(make_context) -> None:
    ctx = make_context(
        {
            "package.json": {"dependencies": {"react": "^18.0.0", "vue": "^3.4.0"}},
            "node_modules/react/package.json": {"version": "18.3.1"},
            "composer.json": {"require": {"laravel/framework": "^11.0"}},
        }
    )
    react = npm_version_info("react", ctx)
    assert react.major == 18
    assert react.installed == "18.3.1"
    assert react.source == "both"

    vue = npm_version_info("vue", ctx)
    assert vue.source == "dependency"
    assert vue.installed is None

    laravel = composer_version_info("laravel/framework", ctx)
    assert laravel.major == 11
    assert npm_version_info("svelte", ctx) is None


def test_installed_major_wins_over_manifest_spec(make_context) -> None:
    ctx = make_context(
        {
            "package.json": {"dependencies": {"next": "^13.0.0"}},
            "node_modules/next/package.json": {"version": "14.1.0"},
        }
    )
    assert npm_major("next", ctx) == "14"


def test_unversioned_dependency_has_no_major(make_context) -> None:
    ctx = make_context({"package.json": {"dependencies": {"react": "latest"}}})
    assert npm_major("react", ctx) is None
