"""
Test configuration - ensures repo root is in sys.path + isolation guards.

This allows tests to import from top-level packages (lifeos, api).
LIFEOS_HOME / LIFEOS_DB are pointed at a temp directory before anything is
imported so no test can touch a real ~/.lifeos store.

IMPORTANT: The environment is set at conftest load time (not in fixtures)
because api.server builds its app at import time.
"""

import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import lifeos.*, api.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


# =============================================================================
# ISOLATION GUARD: never use the real app home
# =============================================================================

_TEST_HOME = Path(tempfile.mkdtemp(prefix="lifeos-tests-"))
os.environ["LIFEOS_HOME"] = str(_TEST_HOME)
os.environ["LIFEOS_DB"] = str(_TEST_HOME / "data" / "guard.db")
os.environ.pop("LIFEOS_API_TOKEN", None)
os.environ.pop("ANTHROPIC_API_KEY", None)
for _name in ("LIFEOS_DETECTION_INTERVAL_MS", "LIFEOS_LEARNING_INTERVAL_MS", "LIFEOS_ENABLED"):
    os.environ.pop(_name, None)

from lifeos.document_store import DocumentStore  # noqa: E402
from lifeos.intelligence.context import AnticipationContext  # noqa: E402
from lifeos.intelligence.signals import Signal  # noqa: E402

# Friday 2026-02-13 10:00 UTC
NOW = datetime(2026, 2, 13, 10, 0, 0)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    """Fresh SQLite document store per test."""
    return DocumentStore(tmp_path / "lifeos.db")


@pytest.fixture
def make_signal():
    """Factory for Signals with sensible defaults."""

    def _make(**overrides) -> Signal:
        values = {
            "type": "aging_email",
            "severity": "attention",
            "domain": "business_tech",
            "source": "test",
            "title": "Test signal",
            "context": "context",
            "created_at": NOW,
        }
        values.update(overrides)
        return Signal(**values)

    return _make


@pytest.fixture
def make_context():
    """Factory for AnticipationContext pinned to NOW unless overridden."""

    def _make(**overrides) -> AnticipationContext:
        overrides.setdefault("now", NOW)
        return AnticipationContext(**overrides)

    return _make

