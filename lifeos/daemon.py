"""
Life OS Anticipation Daemon

Runs the anticipation worker as a standalone process against the local
document store:
- Detection cycle on its own timer (default 5 minutes)
- Learning cycle on its own timer (default 60 minutes)
- Worker status written to a JSON state file for `status`
- SIGINT/SIGTERM trigger a graceful shutdown

Usage:
    python -m lifeos.daemon start        # Run the worker (foreground)
    python -m lifeos.daemon run-once     # One learning + detection cycle, then exit
    python -m lifeos.daemon learn        # One learning cycle, print the weekly digest
    python -m lifeos.daemon brief        # Print today's morning brief
    python -m lifeos.daemon status       # Show the last saved worker state
"""

import asyncio
import json
import logging
import os
import signal
import sys
from pathlib import Path

from lifeos import paths
from lifeos.config import PipelineConfig, load_config
from lifeos.document_store import DocumentStore
from lifeos.intelligence.context import build_context_from_store
from lifeos.intelligence.detectors.insight_generator import build_weekly_digest
from lifeos.intelligence.morning_brief import generate_morning_brief
from lifeos.intelligence.temporal import to_iso
from lifeos.observability import configure_logging
from lifeos.worker import AnticipationWorker

logger = logging.getLogger(__name__)

STATE_SAVE_SECONDS = 30


def state_file() -> Path:
    return paths.data_dir() / "anticipation_state.json"


# ============================================================
# Wiring
# ============================================================


def make_text_client():
    """Anthropic client when ANTHROPIC_API_KEY is set, else None (insights disabled)."""
    if not os.environ.get("ANTHROPIC_API_KEY"):
        logger.info("ANTHROPIC_API_KEY not set, insight generator disabled")
        return None
    from lifeos.llm_client import AnthropicTextClient

    return AnthropicTextClient()


def store_context_provider(worker: AnticipationWorker, store: DocumentStore):
    """Context provider reading the document store at cycle time."""

    def provide():
        now = worker.clock()
        return build_context_from_store(
            store,
            now,
            signals=worker.signal_store.active(now),
            patterns=worker.patterns,
        )

    return provide


def build_worker(
    config: PipelineConfig | None = None,
    store: DocumentStore | None = None,
    text_client=None,
) -> AnticipationWorker:
    """Worker wired to a document store, with persisted signals reloaded."""
    config = config or load_config()
    store = store if store is not None else DocumentStore()
    worker = AnticipationWorker(
        config.worker,
        store=store,
        text_client=text_client,
        scoring=config.scoring,
        feedback_config=config.feedback,
    )
    worker.set_context_provider(store_context_provider(worker, store))
    worker.signal_store.load()
    return worker


# ============================================================
# State file
# ============================================================


def save_state(worker: AnticipationWorker, path: Path | None = None) -> None:
    path = path or state_file()
    state = {
        "pid": os.getpid(),
        "updated_at": to_iso(worker.clock()),
        "worker": worker.get_status(),
        "signal_counts": worker.signal_store.counts(),
    }
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(state, f, indent=2, default=str)
    except OSError as e:
        logger.warning(f"Could not save daemon state: {e}")


def load_state(path: Path | None = None) -> dict:
    path = path or state_file()
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not load daemon state: {e}")
        return {}


# ============================================================
# Actions
# ============================================================


async def serve(worker: AnticipationWorker, save_every: float = STATE_SAVE_SECONDS) -> None:
    """Run until SIGINT/SIGTERM, saving state periodically."""
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(signum: int) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
        shutdown.set()

    for signum in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(signum, _handle_signal, signum)

    logger.info("=" * 50)
    logger.info("Life OS anticipation daemon starting")
    logger.info(f"Detectors: {', '.join(worker.engine.registry.ids())}")
    logger.info("=" * 50)

    await worker.start()
    if not worker.is_active:
        logger.warning("Worker is disabled (LIFEOS_ENABLED / config), nothing to do")
        return

    try:
        while not shutdown.is_set():
            save_state(worker)
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=save_every)
            except TimeoutError:
                continue
    finally:
        worker.stop()
        await worker.wait_idle()
        save_state(worker)
        logger.info("Daemon stopped")


async def run_once(worker: AnticipationWorker) -> dict | None:
    """One learning cycle followed by one detection cycle."""
    await worker.run_learning_cycle()
    summary = await worker.run_cycle()
    save_state(worker)
    return summary


async def morning_brief(worker: AnticipationWorker):
    context = await worker.acquire_context()
    suggestions = [p.description for p in worker.patterns if p.confidence >= 0.5]
    return generate_morning_brief(context, worker.signal_store.active(context.now), suggestions)


def _log_status(state: dict) -> None:
    if not state:
        logger.info(f"No state recorded yet ({state_file()})")
        return
    status = state.get("worker", {})
    logger.info(f"PID: {state.get('pid')}")
    logger.info(f"State updated: {state.get('updated_at')}")
    logger.info(f"Active: {status.get('is_active')}  cycles: {status.get('cycle_count', 0)}")
    logger.info(
        f"Skipped: {status.get('skipped_count', 0)}  errors: {status.get('error_count', 0)}"
    )
    logger.info(f"Last run: {status.get('last_run_at') or 'never'}")
    logger.info(f"Last learning: {status.get('last_learning_at') or 'never'}")
    for severity, count in (state.get("signal_counts") or {}).items():
        logger.info(f"  {severity}: {count}")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Life OS anticipation daemon")
    parser.add_argument(
        "action",
        choices=["start", "run-once", "learn", "brief", "status"],
        help="Action to perform",
    )
    parser.add_argument("--config", help="Path to anticipation.yaml")
    parser.add_argument("--db", help="Path to the SQLite document store")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--json-logs", action="store_true", help="Force JSON log lines")

    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_format=True if args.json_logs else None)

    if args.action == "status":
        _log_status(load_state())
        return 0

    config = load_config(args.config)
    store = DocumentStore(args.db)
    worker = build_worker(config, store, text_client=make_text_client())

    if args.action == "start":
        asyncio.run(serve(worker))
    elif args.action == "run-once":
        summary = asyncio.run(run_once(worker))
        if summary is None:
            logger.error("✗ Detection cycle failed or was skipped")
            return 1
        logger.info(
            f"✓ {summary['signal_count']} signals from {len(summary['services_run'])} detectors "
            f"in {summary['duration_ms']}ms"
        )
        for signal_ in worker.signal_store.active()[:10]:
            logger.info(f"  [{signal_.severity.value}] {signal_.title}")
    elif args.action == "learn":
        if not asyncio.run(worker.run_learning_cycle()):
            return 1
        logger.info(build_weekly_digest(worker.patterns))
    elif args.action == "brief":
        brief = asyncio.run(morning_brief(worker))
        print(json.dumps(brief.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
