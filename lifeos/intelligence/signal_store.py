"""
Active Signal Store

The caller-visible collection of signals produced by detection cycles.
Enforces the one-signal-per-dedupe-key invariant across cycles: a new
signal only replaces an unexpired one with the same key when its severity
is strictly higher. Dismissed signals keep their slot, so a dismissal
sticks until the condition escalates.

With a document store attached, every change is mirrored into the
``signals`` collection, which the feedback loop reads as history.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime

from .signals import LifeDomain, Signal, SignalSeverity, SignalType
from .temporal import utcnow

logger = logging.getLogger(__name__)

SIGNALS_COLLECTION = "signals"


class ActiveSignalStore:
    """In-memory signal set, optionally persisted."""

    def __init__(self, document_store=None, clock: Callable[[], datetime] = utcnow):
        self.document_store = document_store
        self._clock = clock
        self._signals: list[Signal] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # persistence helpers
    # ------------------------------------------------------------------

    def _save(self, signal: Signal) -> None:
        if self.document_store is not None:
            self.document_store.upsert(SIGNALS_COLLECTION, signal.to_dict(), key_fields=("id",))

    def _forget(self, signal: Signal) -> None:
        # Resolved signals stay in the collection as feedback history.
        if self.document_store is not None and not signal.is_resolved:
            self.document_store.delete(SIGNALS_COLLECTION, signal.id)

    def load(self, now: datetime | None = None) -> int:
        """Populate from the document store, skipping expired records."""
        if self.document_store is None:
            return 0
        now = now or self._clock()
        loaded = []
        for doc in self.document_store.find(SIGNALS_COLLECTION):
            try:
                signal = Signal.from_dict(doc)
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed signal record {doc.get('id')}: {e}")
                continue
            if not signal.is_expired(now):
                loaded.append(signal)
        with self._lock:
            self._signals = loaded
        logger.info(f"Loaded {len(loaded)} signals from store")
        return len(loaded)

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------

    def add_signals(self, signals: Iterable[Signal], now: datetime | None = None) -> list[Signal]:
        """
        Merge new signals. Returns the ones actually stored.

        Same id replaces in place. Same dedupe key: strictly higher severity
        supersedes, anything else is dropped.
        """
        now = now or self._clock()
        added = []
        with self._lock:
            for signal in signals:
                by_id = next((i for i, s in enumerate(self._signals) if s.id == signal.id), None)
                if by_id is not None:
                    self._signals[by_id] = signal
                    self._save(signal)
                    added.append(signal)
                    continue

                existing = next(
                    (
                        s
                        for s in self._signals
                        if s.dedupe_key == signal.dedupe_key and not s.is_expired(now)
                    ),
                    None,
                )
                if existing is not None:
                    if signal.severity.rank <= existing.severity.rank:
                        continue
                    logger.debug(
                        f"Signal {signal.type.value} escalated "
                        f"{existing.severity.value} -> {signal.severity.value}"
                    )
                    self._signals.remove(existing)
                    self._forget(existing)

                self._signals.append(signal)
                self._save(signal)
                added.append(signal)
        return added

    def add_signal(self, signal: Signal, now: datetime | None = None) -> bool:
        return bool(self.add_signals([signal], now))

    def _mark(self, signal_id: str, **flags) -> Signal | None:
        with self._lock:
            for signal in self._signals:
                if signal.id == signal_id:
                    for name, value in flags.items():
                        setattr(signal, name, value)
                    self._save(signal)
                    return signal
        return None

    def dismiss(self, signal_id: str) -> Signal | None:
        return self._mark(signal_id, is_dismissed=True)

    def act_on(self, signal_id: str) -> Signal | None:
        return self._mark(signal_id, is_acted_on=True)

    def retire_superseded(self, source: str, current: Iterable[Signal]) -> int:
        """
        Drop signals from ``source`` whose dedupe key is not in ``current``.

        Used for detectors that restate the whole picture every run. A
        signal whose key is still reported keeps its slot, dismissal
        included.
        """
        keep = {s.dedupe_key for s in current if s.source == source}
        with self._lock:
            stale = [s for s in self._signals if s.source == source and s.dedupe_key not in keep]
            for signal in stale:
                self._signals.remove(signal)
                self._forget(signal)
        if stale:
            logger.debug(f"Retired {len(stale)} superseded {source} signals")
        return len(stale)

    def clear_expired(self, now: datetime | None = None) -> int:
        """Drop every signal whose expires_at has passed, regardless of severity."""
        now = now or self._clock()
        with self._lock:
            expired = [s for s in self._signals if s.is_expired(now)]
            if expired:
                self._signals = [s for s in self._signals if not s.is_expired(now)]
                for signal in expired:
                    self._forget(signal)
        if expired:
            logger.debug(f"Purged {len(expired)} expired signals")
        return len(expired)

    def replace_all(self, signals: Iterable[Signal]) -> None:
        with self._lock:
            self._signals = list(signals)

    def clear_all(self) -> None:
        with self._lock:
            self._signals = []

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    @property
    def signals(self) -> list[Signal]:
        """Everything held, resolved signals included."""
        with self._lock:
            return list(self._signals)

    def get(self, signal_id: str) -> Signal | None:
        with self._lock:
            return next((s for s in self._signals if s.id == signal_id), None)

    def active(self, now: datetime | None = None) -> list[Signal]:
        """Not dismissed, not acted on, not expired."""
        now = now or self._clock()
        with self._lock:
            return [s for s in self._signals if not s.is_resolved and not s.is_expired(now)]

    def urgent(self, now: datetime | None = None) -> list[Signal]:
        return [
            s
            for s in self.active(now)
            if s.severity in (SignalSeverity.URGENT, SignalSeverity.CRITICAL)
        ]

    def by_domain(self, domain: LifeDomain | str, now: datetime | None = None) -> list[Signal]:
        domain = LifeDomain(domain)
        return [s for s in self.active(now) if s.domain == domain]

    def by_type(self, signal_type: SignalType | str, now: datetime | None = None) -> list[Signal]:
        signal_type = SignalType(signal_type)
        return [s for s in self.active(now) if s.type == signal_type]

    def counts(self, now: datetime | None = None) -> dict[str, int]:
        active = self.active(now)
        return {
            "total": len(active),
            "urgent": sum(
                1 for s in active if s.severity in (SignalSeverity.URGENT, SignalSeverity.CRITICAL)
            ),
            "attention": sum(1 for s in active if s.severity == SignalSeverity.ATTENTION),
            "info": sum(1 for s in active if s.severity == SignalSeverity.INFO),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)
