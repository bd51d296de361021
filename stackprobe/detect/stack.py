"""Stack facade: one call from a project directory to a ``NormalizedStack``."""

from __future__ import annotations

import asyncio
from pathlib import Path

from stackprobe.config import ProbeSettings
from stackprobe.detect.base import ModuleKind
from stackprobe.detect.context import build_context
from stackprobe.detect.manager import ModuleManager
from stackprobe.detect.registry import DetectorRegistry
from stackprobe.logging import get_logger
from stackprobe.types import ModuleContext, NormalizedStack, StackReport

log = get_logger(__name__)

# lockfile -> package manager, in reporting order
LOCKFILE_MANAGERS: tuple[tuple[str, str], ...] = (
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("package-lock.json", "npm"),
    ("composer.lock", "composer"),
    ("poetry.lock", "poetry"),
    ("uv.lock", "uv"),
    ("Pipfile.lock", "pipenv"),
    ("Cargo.lock", "cargo"),
    ("go.sum", "go"),
)

# accepted language id -> runtime; first match wins, ``generic`` otherwise
RUNTIME_BY_LANGUAGE: tuple[tuple[str, str], ...] = (
    ("typescript", "node"),
    ("javascript", "node"),
    ("php", "php"),
    ("python", "python"),
    ("rust", "rust"),
    ("go", "go"),
)

JS_MANAGER_PREFERENCE: tuple[str, ...] = ("bun", "yarn", "pnpm", "npm")


def detect_package_managers(config_files: tuple[str, ...]) -> tuple[str, ...]:
    managers: list[str] = []
    for lockfile, manager in LOCKFILE_MANAGERS:
        if lockfile in config_files and manager not in managers:
            managers.append(manager)
    return tuple(managers)


def detect_runtime(accepted: list[str], package_managers: tuple[str, ...]) -> str:
    if "bun" in package_managers:
        return "bun"
    for language_id, runtime in RUNTIME_BY_LANGUAGE:
        if language_id in accepted:
            return runtime
    return "generic"


def preferred_js_manager(package_managers: tuple[str, ...]) -> str:
    for manager in JS_MANAGER_PREFERENCE:
        if manager in package_managers:
            return manager
    return "npm"


class StackDetector:
    """Detect the stack of *project_root* using the enabled built-in detectors."""

    def __init__(
        self,
        project_root: Path | str,
        registry: DetectorRegistry | None = None,
        settings: ProbeSettings | None = None,
    ) -> None:
        self.project_root = Path(project_root)
        self.settings = settings or ProbeSettings()
        if registry is None:
            registry = DetectorRegistry()
            registry.discover()
        self.registry = registry

    def detect(self) -> NormalizedStack:
        return self.detect_report().stack

    def detect_report(self) -> StackReport:
        return asyncio.run(self.detect_report_async())

    async def detect_report_async(self) -> StackReport:
        context = build_context(self.project_root, self.settings.scan)
        manager = ModuleManager(timeout=self.settings.detection.timeout_seconds)
        for registration in self.registry.get_enabled_registrations():
            manager.register(registration)

        try:
            await manager.initialize()
            await manager.run_detection(context)
            accepted = manager.resolve()
            versions = manager.detect_versions(context)

            package_managers = detect_package_managers(context.config_files)
            modules = {i: manager.get_module(i) for i in accepted}
            stack = NormalizedStack(
                runtime=detect_runtime(accepted, package_managers),
                languages=tuple(
                    m.display_name for m in modules.values() if m.kind == ModuleKind.LANGUAGE
                ),
                frameworks=tuple(
                    m.display_name for m in modules.values() if m.kind != ModuleKind.LANGUAGE
                ),
                package_managers=package_managers,
                config_files=context.config_files,
            )
            commands = manager.generate_commands(
                ModuleContext(
                    project_root=context.project_root,
                    detected_stack=stack,
                    package_manager=preferred_js_manager(package_managers),
                )
            )
            report = StackReport(
                stack=stack.model_copy(update={"commands": commands}),
                results=manager.accepted_results(),
                versions=versions,
                guidelines=manager.collect_guideline_paths(),
                excluded=dict(manager.excluded),
                faults=dict(manager.faults),
            )
        finally:
            await manager.cleanup()

        log.info(
            "Stack detected",
            extra={"fields": {"runtime": report.stack.runtime, "frameworks": list(report.stack.frameworks)}},
        )
        return report
