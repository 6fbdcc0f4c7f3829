"""
Tests for the FastAPI surface.
"""

import math

import pytest
from fastapi.testclient import TestClient

from autoctx.server import create_app
from autoctx.utils.geo import EARTH_RADIUS_M


def north(metres: float) -> float:
    return math.degrees(metres / EARTH_RADIUS_M)


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def session_id(client):
    resp = client.post("/api/sessions", json={"frequency": "10s"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["period_ms"] == 10_000
    return body["session_id"]


def test_status(client):
    resp = client.get("/api/status")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "sessions": 0}


def test_driving_round_trip(client, session_id):
    for i in range(11):
        resp = client.post(
            f"/api/sessions/{session_id}/gps",
            json={"ts": i * 1000, "lat": north(i * 15.0), "lon": 0.0, "accuracy": 5.0},
        )
        assert resp.status_code == 200
    assert resp.json()["speed_kmh"] == pytest.approx(54.0)
    assert resp.json()["gps_quality"] == "good"

    resp = client.post(f"/api/sessions/{session_id}/context", json={"now_ms": 10_000})
    assert resp.status_code == 200
    assert resp.json() == {"context": "driving", "quality": "partial", "timestamp_ms": 10_000}


def test_accel_batch_and_walking(client, session_id):
    batch = [
        {"ts": t, "magnitude": 1.5 if t % 500 == 0 else 0.3}
        for t in range(0, 20_001, 100)
    ]
    resp = client.post(f"/api/sessions/{session_id}/accel", json=batch)
    assert resp.status_code == 200
    assert resp.json()["active"] is True

    resp = client.post(f"/api/sessions/{session_id}/context", json={"now_ms": 20_000})
    assert resp.json()["context"] == "walking"


def test_no_data_is_unknown(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/context", json={"now_ms": 1_000})
    assert resp.json()["context"] == "unknown"
    assert resp.json()["quality"] == "poor"


def test_reset(client, session_id):
    client.post(
        f"/api/sessions/{session_id}/gps",
        json={"ts": 0, "lat": 0.0, "lon": 0.0},
    )
    resp = client.post(f"/api/sessions/{session_id}/reset")
    assert resp.status_code == 200
    assert resp.json()["context"] == "stationary"


def test_sessions_are_isolated(client, session_id):
    other = client.post("/api/sessions", json={"frequency": "1m", "preset": "low_power"}).json()
    assert other["session_id"] != session_id
    client.post(
        f"/api/sessions/{session_id}/gps",
        json={"ts": 0, "lat": 0.0, "lon": 0.0, "accuracy": 5.0},
    )
    resp = client.post(f"/api/sessions/{other['session_id']}/context", json={"now_ms": 0})
    assert resp.json()["context"] == "unknown"
    assert client.get("/api/status").json()["sessions"] == 2


def test_delete_and_unknown_session(client, session_id):
    assert client.delete(f"/api/sessions/{session_id}").status_code == 204
    resp = client.post(f"/api/sessions/{session_id}/context", json={"now_ms": 0})
    assert resp.status_code == 404
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404


def test_bad_requests(client, session_id):
    assert client.post("/api/sessions", json={"frequency": "whenever"}).status_code == 422
    assert client.post("/api/sessions", json={"preset": "turbo"}).status_code == 422
    resp = client.post(f"/api/sessions/{session_id}/gps", json={"ts": 0, "lat": 1.0})
    assert resp.status_code == 422
