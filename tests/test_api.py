"""Tests for the HTTP control API"""
import asyncio

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from parking_monitor.app import main
from parking_monitor.app.schemas import StatusEvent, StatusKind


@pytest.fixture
def client():
    with TestClient(main.app) as client:
        yield client


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_start_rejects_missing_fields(client):
    response = client.post("/api/monitor/start", json={"email": "a@b.c", "target_date": "2027-01-01"})

    assert response.status_code == 422
    assert "password" in response.json()["detail"]


def test_stop_when_idle_is_noop(client):
    response = client.post("/api/monitor/stop")

    assert response.status_code == 200
    assert response.json()["state"] == "idle"


def test_status_when_idle(client):
    body = client.get("/api/monitor/status").json()

    assert body["state"] == "idle"
    assert body["attempts"] == 0
    assert body["last_outcome"] is None


def test_events_since():
    log = main.EventLog(maxlen=2)
    for n in range(3):
        log.append(StatusEvent(kind=StatusKind.CHECKING, message=f"step {n}"))

    assert [e["message"] for e in log.since(0)] == ["step 1", "step 2"]
    assert [e["seq"] for e in log.since(2)] == [3]


@pytest.fixture
def log_lines():
    lines = []
    sink_id = logger.add(lines.append, level="ERROR", format="{message}")
    yield lines
    logger.remove(sink_id)


async def test_crashed_run_is_logged(log_lines):
    async def crash():
        raise RuntimeError("sink exploded")

    task = asyncio.create_task(crash())
    task.add_done_callback(main._log_run_failure)
    await asyncio.gather(task, return_exceptions=True)
    await asyncio.sleep(0)

    assert any("Monitor run crashed: sink exploded" in line for line in log_lines)


async def test_cancelled_run_is_not_logged(log_lines):
    task = asyncio.create_task(asyncio.sleep(60))
    task.add_done_callback(main._log_run_failure)
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    await asyncio.sleep(0)

    assert log_lines == []
