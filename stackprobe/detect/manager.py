"""Detection orchestrator.

Drives every registered detector through one pass:

    register -> initialize -> run_detection -> resolve -> detect_versions
             -> generate_commands

Detector hooks are untrusted: any exception (or a detect call that outlives
the per-detector timeout) is recorded in ``faults`` and the pass carries on.
Only calling the phases out of order raises.

``detect`` calls run on daemon threads rather than the loop's default
executor, which ``asyncio.run`` joins on shutdown; a hung detector is
abandoned once it times out instead of holding the caller.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from stackprobe.detect.base import Detector, ModuleKind, PriorityClass, priority_from_label
from stackprobe.detect.registry import DetectorRegistration
from stackprobe.errors import DetectorFault, PhaseError, RegistrationError
from stackprobe.logging import get_logger
from stackprobe.types import (
    COMMAND_CATEGORIES,
    DetectionContext,
    DetectionResult,
    GuidelinePath,
    ModuleContext,
    PartialCommands,
    StackCommands,
)

log = get_logger(__name__)

DEFAULT_TIMEOUT = 5.0


class Phase(str, Enum):
    UNINITIALIZED = "uninitialized"
    REGISTERED = "registered"
    INITIALIZED = "initialized"
    DETECTED = "detected"
    RESOLVED = "resolved"
    VERSIONED = "versioned"
    COMMANDS_AGGREGATED = "commands-aggregated"


_READY = (
    Phase.INITIALIZED,
    Phase.DETECTED,
    Phase.RESOLVED,
    Phase.VERSIONED,
    Phase.COMMANDS_AGGREGATED,
)


class ModuleManager:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self.phase = Phase.UNINITIALIZED
        self._registrations: dict[str, DetectorRegistration] = {}
        self._modules: dict[str, Detector] = {}
        # initialize/teardown faults outlive a pass; hook faults belong to one
        self._lifecycle_faults: dict[str, str] = {}
        self._pass_faults: dict[str, str] = {}
        self.results: dict[str, DetectionResult] = {}
        self.accepted: list[str] = []
        self.excluded: dict[str, str] = {}
        self.versions: dict[str, str | None] = {}

    # --- lifecycle --------------------------------------------------------

    def register(self, registration: DetectorRegistration) -> None:
        if self.phase not in (Phase.UNINITIALIZED, Phase.REGISTERED):
            raise RegistrationError(
                f"Cannot register {registration.id!r} after initialization"
            )
        if registration.id in self._registrations:
            raise RegistrationError(f"Detector {registration.id!r} is already registered")
        self._registrations[registration.id] = registration
        self.phase = Phase.REGISTERED

    async def initialize(self) -> None:
        """Instantiate and set up every registered detector exactly once."""
        self._require(Phase.UNINITIALIZED, Phase.REGISTERED, op="initialize")
        self._lifecycle_faults.clear()
        for registration in self._registrations.values():
            try:
                detector = registration.create()
                self._validate(registration, detector)
                await asyncio.wait_for(detector.setup(), timeout=self.timeout)
            except Exception as exc:
                self._record_fault(DetectorFault(registration.id, "initialize", exc), lifecycle=True)
                continue
            self._modules[registration.id] = detector
        log.info(
            "Detectors initialized",
            extra={"fields": {"loaded": len(self._modules), "failed": len(self._lifecycle_faults)}},
        )
        self.phase = Phase.INITIALIZED

    @staticmethod
    def _validate(registration: DetectorRegistration, detector: Any) -> None:
        if not isinstance(detector, Detector):
            raise TypeError(f"factory returned {type(detector).__name__}, not a Detector")
        if detector.id != registration.id:
            raise ValueError(f"detector id {detector.id!r} does not match registration")
        if not isinstance(detector.kind, ModuleKind):
            raise ValueError(f"invalid kind {detector.kind!r}")
        if not isinstance(detector.priority, PriorityClass):
            raise ValueError(f"invalid priority class {detector.priority!r}")

    async def cleanup(self) -> None:
        """Tear down loaded detectors; registrations are kept."""
        for detector_id, detector in self._modules.items():
            try:
                await asyncio.wait_for(detector.teardown(), timeout=self.timeout)
            except Exception as exc:
                self._record_fault(DetectorFault(detector_id, "teardown", exc), lifecycle=True)
        self._modules.clear()
        self._reset_pass()
        self.phase = Phase.UNINITIALIZED

    def clear(self) -> None:
        self._registrations.clear()
        self._modules.clear()
        self._lifecycle_faults.clear()
        self._reset_pass()
        self.phase = Phase.UNINITIALIZED

    @property
    def faults(self) -> dict[str, str]:
        """Detector id -> fault message, for lifecycle hooks and the current pass."""
        return {**self._lifecycle_faults, **self._pass_faults}

    def _reset_pass(self) -> None:
        self._pass_faults = {}
        self.results = {}
        self.accepted = []
        self.excluded = {}
        self.versions = {}

    # --- detection --------------------------------------------------------

    async def run_detection(self, context: DetectionContext) -> dict[str, DetectionResult]:
        """Run every detector concurrently and return the raw results by id."""
        self._require(*_READY, op="run_detection")
        self._reset_pass()
        log.info("Detection started", extra={"fields": {"root": str(context.project_root)}})

        ids = list(self._modules)
        outcomes = await asyncio.gather(
            *(self._detect_one(self._modules[i], context) for i in ids)
        )
        self.results = dict(zip(ids, outcomes, strict=True))
        self.phase = Phase.DETECTED

        log.info(
            "Detection complete",
            extra={"fields": {"detected": sum(r.detected for r in outcomes), "total": len(ids)}},
        )
        return dict(self.results)

    async def _detect_one(self, detector: Detector, context: DetectionContext) -> DetectionResult:
        try:
            result = await asyncio.wait_for(
                _in_daemon_thread(detector.detect, context, name=f"stackprobe-detect-{detector.id}"),
                timeout=self.timeout,
            )
        except TimeoutError:
            message = f"timed out after {self.timeout}s"
            self._pass_faults[detector.id] = message
            log.warning("Detector timed out", extra={"fields": {"id": detector.id, "timeout": self.timeout}})
            return DetectionResult.fault(message)
        except Exception as exc:
            fault = DetectorFault(detector.id, "detect", exc)
            self._record_fault(fault)
            return DetectionResult.fault(str(fault))
        if not isinstance(result, DetectionResult):
            fault = DetectorFault(detector.id, "detect", TypeError(f"returned {type(result).__name__}"))
            self._record_fault(fault)
            return DetectionResult.fault(str(fault))
        return result

    def resolve(self) -> list[str]:
        """Accept detected results highest priority first, honouring exclusions.

        Within one priority class the earlier registration is visited first, so
        it wins any mutual exclusion.
        """
        self._require(Phase.DETECTED, op="resolve")
        accepted: list[str] = []
        excluded: dict[str, str] = {}
        for detector_id in self._priority_order(self.results):
            result = self.results[detector_id]
            if not result.detected or detector_id in excluded:
                continue
            accepted.append(detector_id)
            for target in result.excludes or ():
                if target == detector_id or target in excluded:
                    continue
                excluded[target] = detector_id
                if target in accepted:
                    accepted.remove(target)
                log.info("Detector excluded", extra={"fields": {"id": target, "by": detector_id}})
        self.accepted = accepted
        self.excluded = excluded
        self.phase = Phase.RESOLVED
        return list(accepted)

    def accepted_results(self) -> dict[str, DetectionResult]:
        return {i: self.results[i] for i in self.accepted}

    # --- versions, commands, guidelines -------------------------------------

    def detect_versions(self, context: DetectionContext) -> dict[str, str | None]:
        self._require(Phase.RESOLVED, op="detect_versions")
        versions: dict[str, str | None] = {}
        for detector_id in self.accepted:
            try:
                version = self._modules[detector_id].detect_version(context)
            except Exception as exc:
                self._record_fault(DetectorFault(detector_id, "detect_version", exc))
                version = None
            versions[detector_id] = version or None
        self.versions = versions
        self.phase = Phase.VERSIONED
        return dict(versions)

    def generate_commands(self, module_context: ModuleContext) -> StackCommands:
        """Merge command contributions of accepted detectors in priority order.

        A category a detector leaves as ``None`` is untouched; otherwise each
        trimmed, non-empty command is appended unless already present.
        """
        self._require(Phase.VERSIONED, op="generate_commands")
        merged: dict[str, list[str]] = {c: [] for c in COMMAND_CATEGORIES}
        for detector_id in self.accepted:
            ctx = module_context.model_copy(
                update={
                    "detection_result": self.results[detector_id],
                    "version": self.versions.get(detector_id),
                }
            )
            try:
                partial = self._modules[detector_id].generate_commands(ctx)
                if not isinstance(partial, PartialCommands):
                    raise TypeError(f"returned {type(partial).__name__}")
            except Exception as exc:
                self._record_fault(DetectorFault(detector_id, "generate_commands", exc))
                continue
            for category in COMMAND_CATEGORIES:
                for command in getattr(partial, category) or ():
                    command = command.strip()
                    if command and command not in merged[category]:
                        merged[category].append(command)
        self.phase = Phase.COMMANDS_AGGREGATED
        return StackCommands(**{c: tuple(v) for c, v in merged.items()})

    def collect_guideline_paths(self) -> list[GuidelinePath]:
        """Guideline references of accepted detectors, highest priority first."""
        self._require(Phase.RESOLVED, Phase.VERSIONED, Phase.COMMANDS_AGGREGATED, op="collect_guideline_paths")
        paths: list[GuidelinePath] = []
        for detector_id in self.accepted:
            try:
                paths.extend(self._modules[detector_id].get_guideline_paths(self.versions.get(detector_id)))
            except Exception as exc:
                self._record_fault(DetectorFault(detector_id, "get_guideline_paths", exc))
        return sorted(paths, key=lambda p: -_priority_value(p.priority))

    # --- queries ----------------------------------------------------------

    def get_modules(self) -> list[Detector]:
        return [self._modules[i] for i in self._priority_order(self._modules)]

    def get_modules_by_kind(self, kind: ModuleKind | str) -> list[Detector]:
        kind = ModuleKind(kind)
        return [m for m in self.get_modules() if m.kind == kind]

    def get_module(self, detector_id: str) -> Detector | None:
        return self._modules.get(detector_id)

    def stats(self) -> dict[str, Any]:
        by_kind = {k.value: 0 for k in ModuleKind}
        by_priority = {p.label: 0 for p in sorted(PriorityClass, reverse=True)}
        for module in self._modules.values():
            by_kind[module.kind.value] += 1
            by_priority[module.priority.label] += 1
        return {
            "phase": self.phase.value,
            "registered": len(self._registrations),
            "loaded": len(self._modules),
            "by_kind": by_kind,
            "by_priority": by_priority,
            "faults": len(self.faults),
        }

    # --- helpers ----------------------------------------------------------

    def _priority_order(self, ids: dict[str, Any]) -> list[str]:
        order = {detector_id: index for index, detector_id in enumerate(self._registrations)}
        return sorted(
            (i for i in ids if i in self._modules),
            key=lambda i: (-self._modules[i].priority, order[i]),
        )

    def _require(self, *allowed: Phase, op: str) -> None:
        if self.phase not in allowed:
            raise PhaseError(f"{op}() is not allowed in phase {self.phase.value!r}")

    def _record_fault(self, fault: DetectorFault, *, lifecycle: bool = False) -> None:
        faults = self._lifecycle_faults if lifecycle else self._pass_faults
        faults[fault.detector_id] = str(fault)
        log.warning(
            "Detector fault",
            extra={"fields": {"id": fault.detector_id, "hook": fault.hook, "error": repr(fault.cause)}},
        )


def _in_daemon_thread(fn: Callable[..., Any], *args: Any, name: str) -> asyncio.Future:
    """Run ``fn(*args)`` on a daemon thread and expose the outcome as a loop future.

    If the awaiting side has given up (timeout) or the loop is already closed,
    the late outcome is dropped.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def _settle(setter: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            setter(value)

    def _target() -> None:
        try:
            outcome = (future.set_result, fn(*args))
        except Exception as exc:
            outcome = (future.set_exception, exc)
        try:
            loop.call_soon_threadsafe(_settle, *outcome)
        except RuntimeError:
            # loop closed while the call was still running
            log.debug("Dropping late detector outcome", extra={"fields": {"thread": name}})

    threading.Thread(target=_target, name=name, daemon=True).start()
    return future


def _priority_value(label: str) -> int:
    try:
        return int(priority_from_label(label))
    except ValueError:
        return 0
