"""Built-in detector catalog.

Order matters: within one priority class the orchestrator visits detectors in
this order, so an entry listed first wins a mutual exclusion.
"""

from __future__ import annotations

from stackprobe.detect.registry import DetectorFactory
from stackprobe.modules.frontend import (
    AstroDetector,
    NextDetector,
    NuxtDetector,
    ReactDetector,
    SolidDetector,
    SvelteDetector,
    SvelteKitDetector,
    VueDetector,
)
from stackprobe.modules.languages import (
    GoDetector,
    JavaScriptDetector,
    PHPDetector,
    PythonDetector,
    RustDetector,
    TypeScriptDetector,
)
from stackprobe.modules.laravel import (
    FluxFreeDetector,
    FluxProDetector,
    FolioDetector,
    InertiaDetector,
    LaravelBoostDetector,
    LaravelDetector,
    LivewireDetector,
    PennantDetector,
    VoltDetector,
)
from stackprobe.modules.php_tools import PestDetector, PHPUnitDetector, PintDetector
from stackprobe.modules.styling import BootstrapDetector, BulmaDetector, TailwindDetector

_CLASSES = (
    LaravelBoostDetector,
    LaravelDetector,
    NextDetector,
    NuxtDetector,
    SvelteKitDetector,
    AstroDetector,
    ReactDetector,
    VueDetector,
    SvelteDetector,
    SolidDetector,
    TailwindDetector,
    BootstrapDetector,
    BulmaDetector,
    InertiaDetector,
    LivewireDetector,
    VoltDetector,
    FolioDetector,
    PennantDetector,
    FluxProDetector,
    FluxFreeDetector,
    PestDetector,
    PHPUnitDetector,
    PintDetector,
    TypeScriptDetector,
    PHPDetector,
    JavaScriptDetector,
    PythonDetector,
    RustDetector,
    GoDetector,
)

BUILTIN_DETECTORS: list[tuple[str, DetectorFactory]] = [(cls.id, cls) for cls in _CLASSES]
