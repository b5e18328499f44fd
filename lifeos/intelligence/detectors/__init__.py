"""
Detectors

Each detector is a named ``context -> list[Signal]`` strategy. The registry
keeps them in run order so new detectors can be added without touching the
engine.
"""

import logging
from collections.abc import Iterator

from lifeos.config import AgingConfig

from .aging import AgingDetector
from .base import BaseDetector
from .context_switch import ContextSwitchPrep
from .cross_domain import CrossDomainCorrelator
from .deadline_radar import DeadlineRadar
from .family_awareness import FamilyAwareness
from .financial_sentinel import FinancialSentinel
from .insight_generator import InsightGenerator
from .pattern_recognizer import PatternRecognizer
from .streak_guardian import StreakGuardian

logger = logging.getLogger(__name__)


class DetectorRegistry:
    """Ordered collection of detectors keyed by ``detector_id``."""

    def __init__(self, detectors: list[BaseDetector] | None = None):
        self._detectors: dict[str, BaseDetector] = {}
        for detector in detectors or []:
            self.register(detector)

    def register(self, detector: BaseDetector, replace: bool = False) -> None:
        if not detector.detector_id:
            raise ValueError(f"{type(detector).__name__} has no detector_id")
        if detector.detector_id in self._detectors and not replace:
            raise ValueError(f"Detector already registered: {detector.detector_id}")
        self._detectors[detector.detector_id] = detector
        logger.debug(f"Registered detector {detector.detector_id} v{detector.version}")

    def unregister(self, detector_id: str) -> BaseDetector | None:
        return self._detectors.pop(detector_id, None)

    def get(self, detector_id: str) -> BaseDetector | None:
        return self._detectors.get(detector_id)

    def ids(self) -> list[str]:
        return list(self._detectors)

    def __iter__(self) -> Iterator[BaseDetector]:
        return iter(list(self._detectors.values()))

    def __len__(self) -> int:
        return len(self._detectors)

    def __contains__(self, detector_id: str) -> bool:
        return detector_id in self._detectors


def default_registry(
    aging: AgingConfig | None = None,
    text_client=None,
    insight_timeout_seconds: float = 15.0,
) -> DetectorRegistry:
    """
    The standard detector line-up.

    The insight generator is only registered when a text client is given.
    """
    registry = DetectorRegistry(
        [
            AgingDetector(aging),
            StreakGuardian(),
            DeadlineRadar(),
            PatternRecognizer(),
            CrossDomainCorrelator(),
            FamilyAwareness(),
            FinancialSentinel(),
            ContextSwitchPrep(),
        ]
    )
    if text_client is not None:
        registry.register(InsightGenerator(text_client, insight_timeout_seconds))
    return registry


__all__ = [
    "BaseDetector",
    "DetectorRegistry",
    "default_registry",
    "AgingDetector",
    "DeadlineRadar",
    "PatternRecognizer",
    "CrossDomainCorrelator",
    "InsightGenerator",
    "StreakGuardian",
    "FamilyAwareness",
    "FinancialSentinel",
    "ContextSwitchPrep",
]
