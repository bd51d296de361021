"""stackprobe CLI: detect a project's stack, list detectors and guideline references."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from stackprobe.config import load_config
from stackprobe.detect.registry import DetectorRegistry
from stackprobe.detect.stack import StackDetector
from stackprobe.errors import ConfigError
from stackprobe.types import COMMAND_CATEGORIES, StackReport
from stackprobe.validator import validate_stack

app = typer.Typer(add_completion=False, help="Detect project stacks for AI assistant configuration")
console = Console()

FORMATS = ("table", "list", "json")


def _registry(config_path: Path) -> DetectorRegistry:
    registry = DetectorRegistry()
    registry.discover()
    registry.load_from_config(config_path)
    return registry


def _run(path: str, config: str | None) -> StackReport:
    root = Path(path)
    config_path = Path(config) if config else root
    try:
        settings = load_config(config_path)
        registry = _registry(config_path)
    except ConfigError as exc:
        rprint(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    return StackDetector(root, registry=registry, settings=settings).detect_report()


def _joined(values: tuple[str, ...] | list[str]) -> str:
    return ", ".join(values) if values else "-"


@app.command()
def detect(
    path: str = typer.Argument(".", help="Path to the project root"),
    as_json: bool = typer.Option(False, "--json", help="Print the normalized stack as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show evidence, versions and exclusions"),
    config: str | None = typer.Option(None, "--config", help="Config file (defaults to <path>/.stackprobe.json)"),
) -> None:
    report = _run(path, config)
    stack = report.stack

    if as_json:
        payload = stack.model_dump(mode="json")
        validate_stack(payload)
        print(json.dumps(payload, indent=2))
        return

    table = Table(title="Detected Stack")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Runtime", stack.runtime)
    table.add_row("Languages", _joined(stack.languages))
    table.add_row("Frameworks", _joined(stack.frameworks))
    table.add_row("Package managers", _joined(stack.package_managers))
    table.add_row("Config files", _joined(stack.config_files))
    console.print(table)

    if not stack.commands.is_empty():
        commands = Table(title="Commands")
        commands.add_column("Category", style="cyan")
        commands.add_column("Commands")
        for category in COMMAND_CATEGORIES:
            values = getattr(stack.commands, category)
            if values:
                commands.add_row(category, "\n".join(values))
        console.print(commands)

    if "laravel-boost" in report.results:
        suppressed = sorted(i for i, by in report.excluded.items() if by == "laravel-boost")
        rprint(
            "[yellow]Laravel Boost detected:[/yellow] its guidance replaces "
            f"{len(suppressed)} detector(s): {_joined(suppressed)}"
        )

    if verbose:
        _print_details(report)


def _print_details(report: StackReport) -> None:
    results = Table(title="Accepted Detectors")
    results.add_column("Id", style="cyan")
    results.add_column("Confidence", justify="right")
    results.add_column("Version")
    results.add_column("Evidence")
    for detector_id, result in report.results.items():
        results.add_row(
            detector_id,
            f"{result.confidence:.2f}",
            report.versions.get(detector_id) or "-",
            "\n".join(result.evidence),
        )
    console.print(results)

    for detector_id, by in report.excluded.items():
        rprint(f"[dim]excluded[/dim] {detector_id} [dim]by[/dim] {by}")
    for detector_id, message in report.faults.items():
        rprint(f"[red]fault[/red] {detector_id}: {message}")


@app.command()
def modules(
    enabled: bool = typer.Option(False, "--enabled", help="Only enabled detectors"),
    disabled: bool = typer.Option(False, "--disabled", help="Only disabled detectors"),
    kind: str | None = typer.Option(None, "--type", help='"framework" | "library" | "language"'),
    fmt: str = typer.Option("table", "--format", help='"table" | "list" | "json"'),
    config: str | None = typer.Option(None, "--config", help="Config file (defaults to ./.stackprobe.json)"),
) -> None:
    if fmt not in FORMATS:
        rprint(f"[red]Unknown format:[/red] {fmt}")
        raise typer.Exit(code=2)
    try:
        registry = _registry(Path(config) if config else Path("."))
    except ConfigError as exc:
        rprint(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    rows = []
    for registration in registry.get_all_registrations():
        if (enabled and not registration.enabled) or (disabled and registration.enabled):
            continue
        detector = registration.create()
        if kind and detector.kind.value != kind:
            continue
        meta = detector.get_metadata()
        rows.append(
            {
                "id": registration.id,
                "name": meta.display_name,
                "kind": detector.kind.value,
                "priority": detector.priority.label,
                "enabled": registration.enabled,
                "description": meta.description,
            }
        )

    if fmt == "json":
        print(json.dumps(rows, indent=2))
    elif fmt == "list":
        for row in rows:
            state = "enabled" if row["enabled"] else "disabled"
            print(f"{row['id']} ({row['kind']}, {row['priority']}, {state})")
    else:
        table = Table(title=f"Detectors ({len(rows)})")
        for column in ("Id", "Name", "Kind", "Priority", "Enabled"):
            table.add_column(column, style="cyan" if column == "Id" else None)
        for row in rows:
            table.add_row(
                row["id"],
                row["name"],
                row["kind"],
                row["priority"],
                "[green]yes[/green]" if row["enabled"] else "[red]no[/red]",
            )
        console.print(table)


@app.command()
def guidelines(
    path: str = typer.Argument(".", help="Path to the project root"),
    as_json: bool = typer.Option(False, "--json", help="Print guideline references as JSON"),
    config: str | None = typer.Option(None, "--config", help="Config file (defaults to <path>/.stackprobe.json)"),
) -> None:
    report = _run(path, config)
    if as_json:
        print(json.dumps([g.model_dump(mode="json") for g in report.guidelines], indent=2))
        return
    if not report.guidelines:
        rprint("[yellow]No guidelines for the detected stack.[/yellow]")
        return
    table = Table(title="Guideline References")
    table.add_column("Path", style="cyan")
    table.add_column("Priority")
    table.add_column("Category")
    table.add_column("Version")
    for guideline in report.guidelines:
        table.add_row(guideline.path, guideline.priority, guideline.category, guideline.version or "-")
    console.print(table)


if __name__ == "__main__":
    app()
