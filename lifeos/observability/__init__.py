"""
Observability module: structured logging, cycle IDs, metrics.

Usage:
    from lifeos.observability import get_logger, CycleContext

    logger = get_logger(__name__)
    with CycleContext() as ctx:
        logger.info("Cycle started", extra={"interval_ms": 300000})

Metrics:
    from lifeos.observability import REGISTRY, detection_cycles

    detection_cycles.inc()
    print(REGISTRY.to_prometheus())
"""

from .context import CycleContext, generate_cycle_id, get_cycle_id, set_cycle_id
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger
from .metrics import (
    REGISTRY,
    Counter,
    DurationSummary,
    Gauge,
    MetricsRegistry,
    active_signals,
    detection_cycle_duration,
    detection_cycle_errors,
    detection_cycles,
    detection_cycles_skipped,
    detector_failures,
    insight_failures,
    learning_cycles,
    signals_emitted,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "CycleContext",
    "generate_cycle_id",
    "get_cycle_id",
    "set_cycle_id",
    # Metrics
    "REGISTRY",
    "MetricsRegistry",
    "Counter",
    "Gauge",
    "DurationSummary",
    "active_signals",
    "detection_cycles",
    "detection_cycles_skipped",
    "detection_cycle_errors",
    "detection_cycle_duration",
    "detector_failures",
    "insight_failures",
    "learning_cycles",
    "signals_emitted",
]
