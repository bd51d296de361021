"""Exception taxonomy for detection passes.

Only ``PhaseError`` and ``ConfigError`` ever reach a caller: the other errors
are raised and absorbed inside the pass so a single bad manifest or detector
cannot fail the whole detection.
"""

from __future__ import annotations


class StackProbeError(Exception):
    pass


class ContextBuildError(StackProbeError):
    """A manifest could not be read or parsed; the builder treats it as absent."""


class DetectorFault(StackProbeError):
    """An exception raised inside one detector hook."""

    def __init__(self, detector_id: str, hook: str, cause: BaseException) -> None:
        self.detector_id = detector_id
        self.hook = hook
        self.cause = cause
        super().__init__(f"{detector_id}.{hook} failed: {cause!r}")


class RegistrationError(StackProbeError):
    pass


class PhaseError(StackProbeError):
    pass


class ConfigError(StackProbeError):
    pass
