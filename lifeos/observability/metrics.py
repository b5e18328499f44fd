"""
Pipeline metrics.

Counters and gauges for the worker, plus a duration summary for detection
cycles. Everything is process-local and served by /api/metrics in the
Prometheus text format.
"""

import threading
from dataclasses import dataclass, field


@dataclass
class Counter:
    """Thread-safe monotonically increasing count."""

    name: str
    description: str
    _value: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def render(self) -> list[str]:
        return [f"# TYPE {self.name} counter", f"{self.name} {self.value}"]


@dataclass
class Gauge:
    """Thread-safe point-in-time value."""

    name: str
    description: str
    _value: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def set(self, value: float) -> None:
        with self._lock:
            self._value = value

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def render(self) -> list[str]:
        return [f"# TYPE {self.name} gauge", f"{self.name} {self.value}"]


@dataclass
class DurationSummary:
    """Running count, total and latest value of observed durations in seconds."""

    name: str
    description: str
    _count: int = 0
    _sum: float = 0.0
    _last: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def observe(self, seconds: float) -> None:
        with self._lock:
            self._count += 1
            self._sum += seconds
            self._last = seconds

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    @property
    def last(self) -> float:
        with self._lock:
            return self._last

    def render(self) -> list[str]:
        with self._lock:
            return [
                f"# TYPE {self.name} summary",
                f"{self.name}_count {self._count}",
                f"{self.name}_sum {self._sum}",
            ]


class MetricsRegistry:
    """Named metrics, created on first use."""

    def __init__(self) -> None:
        self._metrics: dict[str, Counter | Gauge | DurationSummary] = {}
        self._lock = threading.Lock()

    def _get(self, kind, name: str, description: str):
        with self._lock:
            metric = self._metrics.get(name)
            if metric is None:
                metric = self._metrics[name] = kind(name, description)
            elif not isinstance(metric, kind):
                raise TypeError(f"Metric {name} already registered as {type(metric).__name__}")
            return metric

    def counter(self, name: str, description: str = "") -> Counter:
        return self._get(Counter, name, description)

    def gauge(self, name: str, description: str = "") -> Gauge:
        return self._get(Gauge, name, description)

    def summary(self, name: str, description: str = "") -> DurationSummary:
        return self._get(DurationSummary, name, description)

    def to_prometheus(self) -> str:
        """Export in Prometheus text format, sorted by metric name."""
        with self._lock:
            metrics = [self._metrics[name] for name in sorted(self._metrics)]
        lines: list[str] = []
        for metric in metrics:
            if metric.description:
                lines.append(f"# HELP {metric.name} {metric.description}")
            lines.extend(metric.render())
        return "\n".join(lines) + "\n"


REGISTRY = MetricsRegistry()

detection_cycles = REGISTRY.counter("detection_cycles_total", "Completed detection cycles")
detection_cycles_skipped = REGISTRY.counter(
    "detection_cycles_skipped_total", "Detection ticks skipped because a cycle was in flight"
)
detection_cycle_errors = REGISTRY.counter(
    "detection_cycle_errors_total", "Detection cycles aborted by an unexpected error"
)
detection_cycle_duration = REGISTRY.summary(
    "detection_cycle_duration_seconds", "Detection cycle duration"
)
detector_failures = REGISTRY.counter("detector_failures_total", "Individual detector failures")
learning_cycles = REGISTRY.counter("learning_cycles_total", "Completed learning cycles")
signals_emitted = REGISTRY.counter("signals_emitted_total", "Ranked signals emitted by cycles")
insight_failures = REGISTRY.counter(
    "insight_failures_total", "Text-generation insight calls that failed soft"
)
active_signals = REGISTRY.gauge("active_signals", "Signals currently active")
