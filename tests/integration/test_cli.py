from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from stackprobe.cli import app
from stackprobe.validator import validate_stack

runner = CliRunner()


def _write(root: Path, files: dict[str, object]) -> Path:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content if isinstance(content, str) else json.dumps(content), encoding="utf-8")
    return root


@pytest.fixture
def next_project(tmp_path: Path) -> Path:
    return _write(
        tmp_path / "web",
        {
            "package.json": {
                "dependencies": {"next": "^14.1.0", "react": "^18.2.0", "react-dom": "^18.2.0"},
                "scripts": {"dev": "next dev", "build": "next build"},
            },
            "next.config.js": "module.exports = {}\n",
            "app/page.tsx": "export default function Page() { return null }\n",
            "package-lock.json": "{}",
        },
    )


@pytest.mark.timeout(30)
def test_detect_json_is_a_valid_stack(next_project: Path) -> None:
    result = runner.invoke(app, ["detect", str(next_project), "--json"])
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    validate_stack(payload)
    assert payload["runtime"] == "node"
    assert payload["frameworks"] == ["Next.js"]
    assert payload["commands"]["install"] == ["npm install"]


@pytest.mark.timeout(30)
def test_detect_prints_tables(next_project: Path) -> None:
    result = runner.invoke(app, ["detect", str(next_project)])
    assert result.exit_code == 0, result.output
    assert "Detected Stack" in result.output
    assert "Runtime" in result.output
    assert "Next.js" in result.output
    assert "Laravel Boost detected" not in result.output


@pytest.mark.timeout(30)
def test_detect_verbose_shows_exclusions(next_project: Path) -> None:
    result = runner.invoke(app, ["detect", str(next_project), "--verbose"])
    assert result.exit_code == 0, result.output
    assert "Accepted Detectors" in result.output
    assert "excluded react by next" in result.output


@pytest.mark.timeout(30)
def test_detect_reports_laravel_boost(tmp_path: Path) -> None:
    project = _write(
        tmp_path / "shop",
        {
            "composer.json": {"require": {"laravel/framework": "^11.0"}},
            "artisan": "#!/usr/bin/env php\n",
            "boost.config.php": "<?php return [];\n",
        },
    )
    result = runner.invoke(app, ["detect", str(project)])
    assert result.exit_code == 0, result.output
    assert "Laravel Boost detected:" in result.output


@pytest.mark.timeout(30)
def test_detect_rejects_invalid_config(next_project: Path) -> None:
    (next_project / ".stackprobe.json").write_text(json.dumps({"scan": {"maxDepth": 0}}), encoding="utf-8")
    result = runner.invoke(app, ["detect", str(next_project)])
    assert result.exit_code == 2
    assert "Configuration error" in result.output


@pytest.mark.timeout(30)
def test_modules_json_filtered_by_kind(tmp_path: Path) -> None:
    result = runner.invoke(app, ["modules", "--format", "json", "--type", "language", "--config", str(tmp_path)])
    assert result.exit_code == 0, result.output

    rows = json.loads(result.stdout)
    assert [r["id"] for r in rows] == ["typescript", "php", "javascript", "python", "rust", "go"]
    assert all(r["kind"] == "language" and r["enabled"] for r in rows)
    assert rows[0]["priority"] == "specialized-language"


@pytest.mark.timeout(30)
def test_modules_list_of_disabled_detectors(tmp_path: Path) -> None:
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"modules": [{"id": "bootstrap", "enabled": False}]}), encoding="utf-8")

    result = runner.invoke(app, ["modules", "--format", "list", "--disabled", "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip().splitlines() == ["bootstrap (library, css-framework, disabled)"]


@pytest.mark.timeout(30)
def test_modules_table(tmp_path: Path) -> None:
    result = runner.invoke(app, ["modules", "--config", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Detectors (29)" in result.output


def test_modules_rejects_unknown_format() -> None:
    result = runner.invoke(app, ["modules", "--format", "yaml"])
    assert result.exit_code == 2
    assert "Unknown format" in result.output


@pytest.mark.timeout(30)
def test_guidelines_json(next_project: Path) -> None:
    result = runner.invoke(app, ["guidelines", str(next_project), "--json"])
    assert result.exit_code == 0, result.output

    guidelines = json.loads(result.stdout)
    assert guidelines[0] == {
        "path": "next/guidelines/framework.md",
        "priority": "meta-framework",
        "category": "framework",
        "version": "14",
    }
    assert guidelines[1]["path"] == "next/guidelines/14/features.md"
