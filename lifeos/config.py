"""
Centralized configuration for the Life OS anticipation pipeline.

Defaults live in the dataclasses below. A YAML file (config/anticipation.yaml
or $LIFEOS_CONFIG) may override any of them, and the environment variables
marked below override the file.
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from lifeos import paths

logger = logging.getLogger(__name__)

# ============================================================
# Environment overrides
# ============================================================

ENV_DETECTION_INTERVAL_MS = "LIFEOS_DETECTION_INTERVAL_MS"
"""Detection cycle interval in milliseconds."""

ENV_LEARNING_INTERVAL_MS = "LIFEOS_LEARNING_INTERVAL_MS"
"""Learning cycle interval in milliseconds."""

ENV_ENABLED = "LIFEOS_ENABLED"
"""'0' / 'false' disables the worker entirely."""


@dataclass(frozen=True)
class AgingConfig:
    """Thresholds for the aging detector."""

    email_attention_hours: float = 24
    email_urgent_hours: float = 48
    email_critical_hours: float = 72
    task_stale_days: float = 3
    lead_response_hours: float = 4


AGING_KEYS = tuple(f.name for f in fields(AgingConfig))


@dataclass(frozen=True)
class ScoringConfig:
    """
    Ranking constants for the priority synthesizer.

    The priority-task boost is a secondary sort key. It orders signals whose
    weighted scores are equal and never changes a score; zero disables it.
    """

    severity_scores: dict[str, float] = field(
        default_factory=lambda: {"critical": 100.0, "urgent": 75.0, "attention": 50.0, "info": 25.0}
    )
    priority_task_boost: float = 10.0
    planning_horizon_days: int = 7
    boosted_priorities: tuple[str, ...] = ("urgent", "high")


@dataclass(frozen=True)
class FeedbackConfig:
    """Weight-modifier constants for the feedback loop."""

    min_interactions: int = 5
    neutral_effectiveness: float = 0.5
    modifier_floor: float = 0.3
    modifier_span: float = 1.7


@dataclass(frozen=True)
class WorkerConfig:
    """Scheduler configuration for the anticipation worker."""

    interval_ms: int = 300_000
    learning_interval_ms: int = 3_600_000
    enabled: bool = True
    insight_timeout_seconds: float = 15.0
    aging: AgingConfig = field(default_factory=AgingConfig)

    def with_updates(self, **updates: Any) -> "WorkerConfig":
        """
        Return a copy with the given flat keys applied.

        Accepts the worker fields plus the five aging threshold names.
        """
        worker_keys = {f.name for f in fields(self)} - {"aging"}
        aging_updates = {}
        worker_updates = {}
        for key, value in updates.items():
            if key in AGING_KEYS:
                aging_updates[key] = value
            elif key in worker_keys:
                worker_updates[key] = value
            elif key == "aging" and isinstance(value, AgingConfig):
                worker_updates["aging"] = value
            else:
                raise ValueError(f"Unknown worker config key: {key}")
        aging = worker_updates.pop("aging", self.aging)
        if aging_updates:
            aging = replace(aging, **aging_updates)
        return replace(self, aging=aging, **worker_updates)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything load_config() produces."""

    worker: WorkerConfig = field(default_factory=WorkerConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    feedback: FeedbackConfig = field(default_factory=FeedbackConfig)


def _known(cls, section: dict, name: str) -> dict:
    allowed = {f.name for f in fields(cls)}
    unknown = set(section) - allowed
    if unknown:
        logger.warning(f"Ignoring unknown keys in '{name}' config: {sorted(unknown)}")
    return {k: v for k, v in section.items() if k in allowed}


def _env_bool(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def load_config(path: Path | str | None = None) -> PipelineConfig:
    """
    Load pipeline configuration.

    Resolution order (later wins):
    1. Dataclass defaults
    2. YAML file (path argument, $LIFEOS_CONFIG, or config/anticipation.yaml)
    3. Environment overrides
    """
    config_file = Path(path) if path else paths.config_path()
    raw: dict = {}
    if config_file.exists():
        with open(config_file) as f:
            raw = yaml.safe_load(f) or {}
        logger.info(f"Loaded pipeline config from {config_file}")
    else:
        logger.debug(f"No config file at {config_file}, using defaults")

    worker_raw = dict(raw.get("worker") or {})
    aging_raw = worker_raw.pop("aging", None) or raw.get("aging") or {}
    aging = AgingConfig(**_known(AgingConfig, aging_raw, "aging"))
    worker = WorkerConfig(aging=aging, **_known(WorkerConfig, worker_raw, "worker"))

    scoring_raw = _known(ScoringConfig, raw.get("scoring") or {}, "scoring")
    if "severity_scores" in scoring_raw:
        scoring_raw["severity_scores"] = {
            **ScoringConfig().severity_scores,
            **scoring_raw["severity_scores"],
        }
    if "boosted_priorities" in scoring_raw:
        scoring_raw["boosted_priorities"] = tuple(scoring_raw["boosted_priorities"])
    scoring = ScoringConfig(**scoring_raw)
    feedback = FeedbackConfig(**_known(FeedbackConfig, raw.get("feedback") or {}, "feedback"))

    if os.environ.get(ENV_DETECTION_INTERVAL_MS):
        worker = replace(worker, interval_ms=int(os.environ[ENV_DETECTION_INTERVAL_MS]))
    if os.environ.get(ENV_LEARNING_INTERVAL_MS):
        worker = replace(worker, learning_interval_ms=int(os.environ[ENV_LEARNING_INTERVAL_MS]))
    if os.environ.get(ENV_ENABLED) is not None:
        worker = replace(worker, enabled=_env_bool(os.environ[ENV_ENABLED]))

    return PipelineConfig(worker=worker, scoring=scoring, feedback=feedback)
