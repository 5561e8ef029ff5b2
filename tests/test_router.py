"""Tests for the FastAPI surface: lifespan wiring of the listeners and /api/v1/health."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from core.config import settings
from integrations.sqs_client import QueueTransportError
from main import create_app

from conftest import BlockingQueueTransport, FakeQuizProcessor, RecordingMonitor


class FailingTransport(BlockingQueueTransport):
    async def receive(self, queue_url, wait_seconds, cancellation):
        self.receive_calls.append({"queue_url": queue_url, "wait_seconds": wait_seconds})
        raise QueueTransportError("network down")


@pytest.fixture(autouse=True)
def consumer_settings(monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_QUEUE_CONSUMERS", True)
    monkeypatch.setattr(settings, "QUIZ_PROCESSOR_PATH", None)


def wait_for_status(client, expected, attempts=50):
    body = {}
    for _ in range(attempts):
        body = client.get("/api/v1/health").json()
        if body["status"] == expected:
            return body
        time.sleep(0.01)
    return body


def test_root_reports_service():
    with TestClient(create_app()) as client:
        response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health_is_disabled_without_processor():
    with TestClient(create_app()) as client:
        body = client.get("/api/v1/health").json()

    assert body["status"] == "disabled"
    assert body["consumers"] == []


def test_health_is_disabled_when_consumers_turned_off(monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_QUEUE_CONSUMERS", False)
    app = create_app()
    app.state.quiz_processor = FakeQuizProcessor()

    with TestClient(app) as client:
        body = client.get("/api/v1/health").json()

    assert body["status"] == "disabled"


def test_health_is_healthy_while_consumers_poll():
    app = create_app()
    app.state.quiz_processor = FakeQuizProcessor()
    app.state.queue_transport = BlockingQueueTransport()
    app.state.monitor = RecordingMonitor()

    with TestClient(app) as client:
        body = wait_for_status(client, "healthy")

    assert body["status"] == "healthy"
    assert [c["name"] for c in body["consumers"]] == ["file-uploads", "ai-processing"]
    # lifespan shutdown stopped both loops
    assert not any(c.running for c in app.state.queue_listener.statuses())


def test_health_is_degraded_when_polling_fails():
    app = create_app()
    app.state.quiz_processor = FakeQuizProcessor()
    app.state.queue_transport = FailingTransport()
    app.state.monitor = RecordingMonitor()

    with TestClient(app) as client:
        body = wait_for_status(client, "degraded")

    assert body["status"] == "degraded"
    assert all(c["consecutive_errors"] >= 1 for c in body["consumers"])
