"""
Signal API Tests

Tests for api/signals_router.py endpoints through TestClient, with an
injected worker so no live document store is touched.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from api.auth import TOKEN_ENV
from api.server import create_app
from lifeos.config import WorkerConfig
from lifeos.intelligence.detectors import BaseDetector, DetectorRegistry
from lifeos.intelligence.signals import ProductivityPattern, Signal, SignalWeight
from lifeos.worker import AnticipationWorker

NOW = datetime(2026, 2, 13, 10, 0, 0)


def _signal(**overrides) -> Signal:
    values = {
        "type": "aging_email",
        "severity": "attention",
        "domain": "business_tech",
        "source": "aging-detector",
        "title": "Email aging",
        "context": "Waiting 30 hours",
        "created_at": NOW,
    }
    values.update(overrides)
    return Signal(**values)


class OneShot(BaseDetector):
    detector_id = "one-shot"

    def detect(self, context):
        return [_signal(severity="urgent", related_entity_ids=["fresh"], title="From detector")]


@pytest.fixture
def worker():
    worker = AnticipationWorker(
        WorkerConfig(interval_ms=3_600_000, learning_interval_ms=3_600_000),
        registry=DetectorRegistry([OneShot()]),
        clock=lambda: NOW,
    )
    worker.signal_store.add_signals(
        [
            _signal(id="s-info", severity="info", domain="family", related_entity_ids=["1"]),
            _signal(id="s-crit", severity="critical", domain="finance", related_entity_ids=["2"]),
            _signal(id="s-att", related_entity_ids=["3"]),
        ],
        NOW,
    )
    return worker


@pytest.fixture
def client(worker):
    with TestClient(create_app(worker=worker)) as client:
        yield client


# =============================================================================
# READS
# =============================================================================


class TestSignalList:
    def test_ranked(self, client):
        data = client.get("/api/signals").json()

        assert data["total"] == 3
        assert [s["id"] for s in data["items"]] == ["s-crit", "s-att", "s-info"]
        assert data["items"][0]["score"] == 100

    def test_filters(self, client):
        assert client.get("/api/signals", params={"domain": "family"}).json()["total"] == 1
        assert client.get("/api/signals", params={"min_severity": "attention"}).json()["total"] == 2
        assert client.get("/api/signals", params={"type": "deal_update"}).json()["total"] == 0

    def test_invalid_filter(self, client):
        response = client.get("/api/signals", params={"domain": "moon"})
        assert response.status_code == 400
        assert "business_tech" in response.json()["detail"]

    def test_limit(self, client):
        data = client.get("/api/signals", params={"limit": 1}).json()
        assert len(data["items"]) == 1
        assert data["total"] == 3

    def test_learned_weights_rerank(self, client, worker):
        worker._weights = [SignalWeight(signal_type="aging_email", domain="finance", weight_modifier=0.3)]
        items = client.get("/api/signals").json()["items"]
        assert [s["id"] for s in items] == ["s-att", "s-crit", "s-info"]
        assert items[1]["score"] == 30

    def test_counts(self, client):
        assert client.get("/api/signals/counts").json() == {
            "total": 3,
            "urgent": 1,
            "attention": 1,
            "info": 1,
        }


class TestWorkerEndpoints:
    def test_status(self, client):
        status = client.get("/api/worker/status").json()
        assert status["is_active"] is False
        assert status["detectors"] == ["one-shot"]

    def test_run(self, client):
        data = client.post("/api/worker/run").json()

        assert data["ran"] is True
        assert data["summary"]["signal_count"] == 1
        assert data["summary"]["services_run"] == ["one-shot"]
        assert client.get("/api/signals/counts").json()["total"] == 4

    def test_patterns_and_digest(self, client, worker):
        worker._patterns = [
            ProductivityPattern("peak_hours", "Most productive around 9:00", {"hours": [9]}, 0.7, "2026-02-09")
        ]
        data = client.get("/api/patterns").json()

        assert data["total"] == 1
        assert data["items"][0]["pattern_type"] == "peak_hours"
        assert "Most productive around 9:00" in data["digest"]

    def test_brief(self, client):
        brief = client.get("/api/brief").json()
        assert brief["date"] == "2026-02-13"
        assert [s["id"] for s in brief["urgent_signals"]] == ["s-crit"]
        assert [s["id"] for s in brief["attention_signals"]] == ["s-att"]

    def test_health_and_metrics(self, client):
        assert client.get("/api/health").json()["status"] == "healthy"
        response = client.get("/api/metrics")
        assert response.status_code == 200
        assert "detection_cycles_total" in response.text


# =============================================================================
# MUTATIONS
# =============================================================================


class TestMutations:
    def test_dismiss(self, client, worker):
        response = client.post("/api/signals/s-att/dismiss")

        assert response.status_code == 200
        assert response.json()["signal"]["is_dismissed"] is True
        assert worker.signal_store.get("s-att").is_dismissed
        assert client.get("/api/signals").json()["total"] == 2

    def test_act(self, client):
        assert client.post("/api/signals/s-crit/act").json()["signal"]["is_acted_on"] is True

    def test_unknown_signal(self, client):
        assert client.post("/api/signals/nope/dismiss").status_code == 404


class TestAuth:
    @pytest.fixture(autouse=True)
    def token(self, monkeypatch):
        monkeypatch.setenv(TOKEN_ENV, "sekrit")

    def test_missing_token(self, client):
        response = client.post("/api/signals/s-att/dismiss")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_wrong_token(self, client):
        response = client.post("/api/signals/s-att/dismiss", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"headers": {"Authorization": "Bearer sekrit"}},
            {"headers": {"X-API-Token": "sekrit"}},
            {"params": {"api_token": "sekrit"}},
        ],
    )
    def test_valid_token(self, client, kwargs):
        assert client.post("/api/signals/s-att/dismiss", **kwargs).status_code == 200

    def test_reads_stay_open(self, client):
        assert client.get("/api/signals").status_code == 200


def test_uninitialized_worker():
    app = create_app(worker=None, autostart=False)
    # Without entering the lifespan the worker is never built
    client = TestClient(app)
    assert client.get("/api/signals/counts").status_code == 503
