"""Tests for the HTTP API."""

import json

import pytest
from fastapi.testclient import TestClient

from subscription_metrics import server
from subscription_metrics.configuration import MetricsConfig
from subscription_metrics.samples import SAMPLE_EVENTS


class _StaticRepository:
    def __init__(self, events):
        self.events = events

    def load(self):
        return self.events


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server, "repository", None)
    return TestClient(server.app)


class TestEndpoints:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_sample_events(self, client):
        assert client.get("/sample-events").json() == [dict(event) for event in SAMPLE_EVENTS]

    def test_validate_reports_per_index(self, client, demo_events):
        response = client.post("/validate", json={"events": [demo_events[0], {"type": "cancel"}]})

        body = response.json()
        assert response.status_code == 200
        assert body["valid"] is False
        assert body["results"][0] == {"index": 0, "valid": True, "errors": []}
        assert body["results"][1]["errors"] == ["missing userId", "missing date"]

    def test_metrics_inline(self, client, demo_events):
        response = client.post("/metrics", json={"events": demo_events})

        body = response.json()
        assert response.status_code == 200
        assert body["source"] == "inline"
        assert list(body["data"]) == ["2025-09", "2025-10", "2025-11"]
        assert body["data"]["2025-09"]["totalRevenue"] == pytest.approx(14.0)

    def test_metrics_with_custom_plans(self, client):
        events = [{"userId": "u1", "type": "subscribe", "plan": "gold", "date": "2025-10-01"}]

        response = client.post("/metrics", json={"events": events, "plans": {"gold": 42.0}})

        assert response.json()["data"]["2025-10"]["arpu"] == pytest.approx(42.0)

    def test_metrics_rejects_non_positive_plan_price(self, client, demo_events):
        response = client.post("/metrics", json={"events": demo_events, "plans": {"basic": 0}})

        assert response.status_code == 422
        assert "basic" in response.json()["detail"][0]

    def test_metrics_custom_plans_keep_base_options(self, client, monkeypatch):
        monkeypatch.setattr(server, "base_config", MetricsConfig(collapse_same_day_change=True))
        events = [
            {"userId": "v1", "type": "subscribe", "plan": "gold", "date": "2025-09-01"},
            {"userId": "u1", "type": "subscribe", "plan": "gold", "date": "2025-10-05"},
            {"userId": "u1", "type": "change", "plan": "gold", "date": "2025-10-05"},
        ]

        response = client.post("/metrics", json={"events": events, "plans": {"gold": 31.0}})

        october = response.json()["data"]["2025-10"]
        assert october["totalRevenue"] == pytest.approx(31.0 + 27.0)
        # The same-day change collapsed, so no segment ended in October.
        assert october["churn"] == 0.0

    def test_metrics_invalid_batch(self, client, demo_events):
        response = client.post("/metrics", json={"events": demo_events + [{"userId": "u5", "type": "upgrade", "plan": "basic", "date": "2025-10-01"}]})

        assert response.status_code == 422
        assert response.json()["detail"]["invalidEvents"] == [{"index": 6, "errors": ["invalid type"]}]

    def test_metrics_without_source(self, client):
        assert client.post("/metrics", json={}).status_code == 400

    def test_metrics_from_repository(self, client, monkeypatch, demo_events):
        monkeypatch.setattr(server, "repository", _StaticRepository(demo_events))

        body = client.post("/metrics", json={}).json()

        assert body["source"] == "database"
        assert body["data"]["2025-11"]["activeUsers"] == 3

    def test_export(self, client, demo_events):
        response = client.post("/export", json={"events": demo_events})

        assert response.status_code == 200
        assert "events.json" in response.headers["content-disposition"]
        assert json.loads(response.text) == demo_events
