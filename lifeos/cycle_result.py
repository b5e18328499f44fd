"""
CycleResult dataclass for detection cycle tracking.

Provides structured tracking of cycle execution with per-detector results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class PhaseResult:
    """Result of a single phase (one detector) execution."""

    name: str
    success: bool
    error: str | None = None
    duration_seconds: float = 0.0
    data: dict = field(default_factory=dict)


@dataclass
class CycleResult:
    """Result of a complete detection cycle."""

    cycle_number: int
    started_at: datetime
    completed_at: datetime
    phases: list[PhaseResult] = field(default_factory=list)
    candidates: list[Any] = field(default_factory=list)
    ranked: list[Any] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    replacing_sources: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    overall_success: bool = True
    error: str | None = None

    @property
    def failed_phases(self) -> list[str]:
        """Get names of failed phases."""
        return [p.name for p in self.phases if not p.success]

    @property
    def succeeded_phases(self) -> list[str]:
        """Get names of successful phases."""
        return [p.name for p in self.phases if p.success]

    def to_summary(self) -> dict:
        """Run summary: timestamp, signal_count, services_run, duration_ms."""
        return {
            "timestamp": self.started_at.isoformat(),
            "signal_count": len(self.ranked),
            "services_run": self.succeeded_phases,
            "duration_ms": int(round(self.duration_seconds * 1000)),
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/storage."""
        return {
            "cycle_number": self.cycle_number,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "overall_success": self.overall_success,
            "error": self.error,
            "candidate_count": len(self.candidates),
            "signal_count": len(self.ranked),
            "phases": [
                {
                    "name": p.name,
                    "success": p.success,
                    "error": p.error,
                    "duration_seconds": p.duration_seconds,
                    "signals": p.data.get("signals", 0),
                }
                for p in self.phases
            ],
            "failed_phases": self.failed_phases,
            "succeeded_phases": self.succeeded_phases,
        }
