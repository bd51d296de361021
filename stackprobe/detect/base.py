"""Detector contract shared by every built-in detector.

A detector is a small, side-effect-free evaluator for one language, framework
or library. The orchestrator only talks to detectors through this contract, so
concrete detectors differ in data (ids, scores, commands), not in shape.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from stackprobe.types import (
    DetectionContext,
    DetectionResult,
    GuidelinePath,
    ModuleContext,
    ModuleMetadata,
    PartialCommands,
)


class PriorityClass(IntEnum):
    """Totally ordered priority; higher values are evaluated and win first."""

    BASE_LANGUAGE = 1
    SPECIALIZED_LANGUAGE = 2
    ECOSYSTEM_TOOL = 3
    CSS_FRAMEWORK = 4
    FRAMEWORK = 5
    META_FRAMEWORK = 6

    @property
    def label(self) -> str:
        return _PRIORITY_LABELS[self]


_PRIORITY_LABELS = {
    PriorityClass.BASE_LANGUAGE: "base-language",
    PriorityClass.SPECIALIZED_LANGUAGE: "specialized-language",
    PriorityClass.ECOSYSTEM_TOOL: "ecosystem-tool",
    PriorityClass.CSS_FRAMEWORK: "css-framework",
    PriorityClass.FRAMEWORK: "framework",
    PriorityClass.META_FRAMEWORK: "meta-framework",
}


def priority_from_label(label: str) -> PriorityClass:
    for member, text in _PRIORITY_LABELS.items():
        if text == label:
            return member
    raise ValueError(f"Unknown priority class: {label}")


class ModuleKind(str, Enum):
    FRAMEWORK = "framework"
    LIBRARY = "library"
    LANGUAGE = "language"


_MAJOR_RE = re.compile(r"^[^\d]*(\d+)")


class Detector(ABC):
    """Base class for detectors.

    Subclasses set the identity attributes and implement ``detect``. Everything
    else has a sensible default: no version, generic guideline references and
    no commands.
    """

    id: str = ""
    kind: ModuleKind = ModuleKind.FRAMEWORK
    priority: PriorityClass = PriorityClass.FRAMEWORK
    display_name: str = ""
    description: str = ""
    homepage: str | None = None
    keywords: tuple[str, ...] = ()
    supported_versions: tuple[str, ...] = ()
    guideline_category: str = "framework"
    extensions: tuple[str, ...] = ()
    config_files: tuple[str, ...] = ()

    def __init__(self, config: dict | None = None) -> None:
        self.config = dict(config or {})

    @abstractmethod
    def detect(self, context: DetectionContext) -> DetectionResult: ...

    def detect_version(self, context: DetectionContext) -> str | None:
        return None

    def get_guideline_paths(self, version: str | None = None) -> list[GuidelinePath]:
        paths = [
            GuidelinePath(
                path=f"{self.id}/guidelines/{self.guideline_category}.md",
                priority=self.priority.label,
                category=self.guideline_category,
                version=version,
            )
        ]
        if version:
            major = major_of(version)
            paths.append(
                GuidelinePath(
                    path=f"{self.id}/guidelines/{major}/features.md",
                    priority=self.priority.label,
                    category=self.guideline_category,
                    version=major,
                )
            )
        return paths

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands()

    def get_supported_extensions(self) -> list[str]:
        return list(self.extensions)

    def get_config_files(self) -> list[str]:
        return list(self.config_files)

    def get_metadata(self) -> ModuleMetadata:
        return ModuleMetadata(
            name=self.id,
            display_name=self.display_name or self.id,
            description=self.description,
            homepage=self.homepage,
            keywords=list(self.keywords),
            supported_versions=list(self.supported_versions),
        )

    async def setup(self) -> None:
        """Optional one-time async setup, awaited during initialization."""

    async def teardown(self) -> None:
        """Optional async cleanup, awaited by ``ModuleManager.cleanup``."""

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"{self.__class__.__name__}(id={self.id!r}, priority={self.priority.label})"


@dataclass
class Scorecard:
    """Additive confidence accumulator used by the built-in detectors."""

    confidence: float = 0.0
    evidence: list[str] = field(default_factory=list)

    def add(self, points: float, note: str) -> None:
        self.confidence += points
        self.evidence.append(note)

    def scale(self, factor: float, note: str) -> None:
        self.confidence *= factor
        self.evidence.append(note)

    def verdict(
        self,
        threshold: float,
        *,
        inclusive: bool = True,
        excludes: list[str] | None = None,
        metadata: dict | None = None,
    ) -> DetectionResult:
        """Result against *threshold*; *excludes* only applies when detected."""
        confidence = min(self.confidence, 1.0)
        detected = confidence >= threshold if inclusive else confidence > threshold
        return DetectionResult(
            detected=detected,
            confidence=confidence,
            evidence=list(self.evidence),
            excludes=list(excludes) if detected and excludes else None,
            metadata=metadata or {},
        )


def major_of(version: str) -> str:
    """Leading integer of *version* ("^18.2" -> "18"); *version* when none."""
    match = _MAJOR_RE.match(version)
    return match.group(1) if match else version


def js_runner(package_manager: str) -> str:
    """Binary runner matching *package_manager* (npx for npm)."""
    return "npx" if package_manager == "npm" else package_manager
