"""
Base detector.

Every detector is a named strategy ``context -> list[Signal]``. Detectors
never perform I/O or mutate the context; the engine times and isolates
them.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from ..context import AnticipationContext
from ..signals import LifeDomain, Signal, SignalSeverity, SignalType


class BaseDetector(ABC):
    """
    Base class for all signal detectors.

    Subclasses must implement:
    - detector_id: Unique identifier (also the signal ``source``)
    - signal_types: Signal types this detector can produce
    - detect(): Main detection logic

    Detectors whose output summarizes the current active set set
    ``replaces_previous``; each successful run then retires whatever the
    previous run produced that is no longer reported.
    """

    detector_id: str = None
    version: str = "1.0.0"
    description: str = ""
    signal_types: list[SignalType] = []
    replaces_previous: bool = False

    def get_parameters(self) -> dict[str, Any]:
        """Return detector parameters (for status reporting)."""
        return {}

    @abstractmethod
    def detect(self, context: AnticipationContext) -> list[Signal]:
        """
        Main detection logic. Must be implemented by subclasses.

        Args:
            context: Snapshot to scan

        Returns:
            Candidate signals (possibly empty)
        """
        pass

    def __call__(self, context: AnticipationContext):
        return self.detect(context)

    def describe(self) -> dict[str, Any]:
        return {
            "detector_id": self.detector_id,
            "version": self.version,
            "description": self.description,
            "signal_types": [str(t) for t in self.signal_types],
            "parameters": self.get_parameters(),
        }

    def create_signal(
        self,
        context: AnticipationContext,
        signal_type: SignalType,
        severity: SignalSeverity,
        domain: LifeDomain,
        title: str,
        text: str,
        suggested_action: str | None = None,
        related_entity_ids: list[str] | None = None,
        expires_at: datetime | None = None,
    ) -> Signal:
        """Helper to create a signal stamped with this detector and the context time."""
        return Signal(
            type=signal_type,
            severity=severity,
            domain=domain,
            source=self.detector_id,
            title=title,
            context=text,
            suggested_action=suggested_action,
            related_entity_ids=[str(i) for i in (related_entity_ids or []) if i],
            created_at=context.now,
            expires_at=expires_at,
        )
