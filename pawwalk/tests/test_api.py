"""Tests for the walk and stamp API endpoints."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

import pawwalk.main as main_module


def _walk_payload(walk_id: str = "w1", day: str = "2025-10-14", hour: int = 9,
                  elapsed: int = 1500) -> dict:
    start = datetime.fromisoformat(f"{day}T{hour:02d}:00:00+09:00")
    return {
        "id": walk_id,
        "pet_id": "kong",
        "date": day,
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(seconds=elapsed)).isoformat(),
        "elapsed_seconds": elapsed,
        "distance_m": 1834.2,
        "path": [[126.978, 37.5665], [126.979, 37.567]],
        "path_points": None,
        "step_count": 2100,
        "avg_speed_kmh": 4.4,
        "max_speed_kmh": 6.1,
        "goal_achieved": elapsed >= 1200,
    }


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["storage_backend"] == "memory"


@pytest.mark.asyncio
async def test_health_reports_disk_for_file_backend(client):
    main_module._config.storage.backend = "file"
    resp = await client.get("/api/v1/health")
    data = resp.json()
    assert "disk_free_gb" in data
    assert data["storage_writable"] is True


@pytest.mark.asyncio
async def test_config_endpoint(client):
    resp = await client.get("/api/v1/config")
    assert resp.status_code == 200
    data = resp.json()
    assert data["min_distance_m"] == 1.5
    assert data["max_accuracy_m"] == 100.0
    assert data["goal_seconds"] == 1200


@pytest.mark.asyncio
async def test_save_and_fetch_walk(client):
    payload = _walk_payload()
    resp = await client.post(
        "/api/v1/walks",
        content=json.dumps(payload),
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 200
    assert resp.json() == {"id": "w1"}

    resp = await client.get("/api/v1/walks/w1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["distance_m"] == 1834.2
    assert data["path"] == payload["path"]
    assert data["goal_achieved"] is True


@pytest.mark.asyncio
async def test_list_walks_by_date(client):
    await client.post("/api/v1/walks", json=_walk_payload("morning", hour=8))
    await client.post("/api/v1/walks", json=_walk_payload("evening", hour=19))
    await client.post("/api/v1/walks", json=_walk_payload("next-day", day="2025-10-15"))

    resp = await client.get("/api/v1/walks", params={"pet_id": "kong", "date": "2025-10-14"})
    assert resp.status_code == 200
    assert [w["id"] for w in resp.json()] == ["evening", "morning"]


@pytest.mark.asyncio
async def test_list_walks_bad_date(client):
    resp = await client.get("/api/v1/walks", params={"pet_id": "kong", "date": "14/10/2025"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_daily_summary(client):
    await client.post("/api/v1/walks", json=_walk_payload("morning", hour=8, elapsed=1500))
    await client.post("/api/v1/walks", json=_walk_payload("evening", hour=19, elapsed=600))
    await client.post("/api/v1/walks", json=_walk_payload("next-day", day="2025-10-15"))

    resp = await client.get("/api/v1/walks/summary", params={"pet_id": "kong", "date": "2025-10-14"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["date"] == "2025-10-14"
    assert data["walk_count"] == 2
    assert data["total_seconds"] == 2100
    assert data["total_distance_m"] == pytest.approx(3668.4)
    assert data["first_start"] == "2025-10-14T08:00:00+09:00"
    assert data["last_end"] == "2025-10-14T19:10:00+09:00"
    assert data["goal_achieved"] is True


@pytest.mark.asyncio
async def test_daily_summary_empty_day(client):
    resp = await client.get("/api/v1/walks/summary", params={"pet_id": "kong", "date": "2025-10-16"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "no walks on that date"}

    resp = await client.get("/api/v1/walks/summary", params={"pet_id": "kong", "date": "yesterday"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_walk_not_found(client):
    resp = await client.get("/api/v1/walks/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "walk not found"}


@pytest.mark.asyncio
async def test_invalid_json(client):
    resp = await client.post(
        "/api/v1/walks",
        content=b"not json{{{",
        headers={"content-type": "application/json"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_incomplete_walk_rejected(client):
    payload = _walk_payload()
    del payload["start_time"]
    resp = await client.post("/api/v1/walks", json=payload)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_upsert_stamp(client):
    body = {"pet_id": "kong", "date": "2025-10-14", "count": 1, "goal_achieved": False}
    resp = await client.post("/api/v1/stamps", json=body)
    assert resp.status_code == 200
    assert resp.json()["stamp_count"] == 1

    body["goal_achieved"] = True
    resp = await client.post("/api/v1/stamps", json=body)
    data = resp.json()
    assert data["stamp_count"] == 2
    assert data["goal_achieved"] is True


@pytest.mark.asyncio
async def test_upsert_stamp_validation(client):
    resp = await client.post("/api/v1/stamps", json={"pet_id": "kong", "date": "2025-10-14", "count": 0})
    assert resp.status_code == 422
    resp = await client.post("/api/v1/stamps", json={"pet_id": "kong"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_stamps_by_month(client):
    for day in ("2025-10-14", "2025-10-02", "2025-11-01"):
        await client.post("/api/v1/stamps", json={"pet_id": "kong", "date": day})

    resp = await client.get("/api/v1/stamps", params={"pet_id": "kong", "year": 2025, "month": 10})
    assert resp.status_code == 200
    assert [s["date"] for s in resp.json()] == ["2025-10-02", "2025-10-14"]

    resp = await client.get("/api/v1/stamps", params={"pet_id": "kong"})
    assert len(resp.json()) == 3


@pytest.mark.asyncio
async def test_list_stamps_needs_year_and_month(client):
    resp = await client.get("/api/v1/stamps", params={"pet_id": "kong", "year": 2025})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_walking_stats(client):
    for day, goal in (("2025-10-12", True), ("2025-10-13", False), ("2025-10-14", True)):
        await client.post("/api/v1/stamps", json={"pet_id": "kong", "date": day, "goal_achieved": goal})
    await client.post("/api/v1/stamps", json={"pet_id": "kong", "date": "2025-10-14"})

    resp = await client.get("/api/v1/pets/kong/stats", params={"today": "2025-10-14"})
    assert resp.status_code == 200
    assert resp.json() == {
        "total_walks": 4,
        "total_goal_achievements": 2,
        "longest_streak": 3,
        "current_streak": 3,
    }


@pytest.mark.asyncio
async def test_storage_outage_returns_503(client):
    from pawwalk.core.errors import PersistenceError

    class DownGateway:
        async def save_walk(self, record):
            raise PersistenceError("disk full")

    main_module._gateway = DownGateway()
    resp = await client.post("/api/v1/walks", json=_walk_payload())
    assert resp.status_code == 503
    assert "disk full" in resp.json()["error"]


@pytest.mark.asyncio
async def test_cors_headers(client):
    resp = await client.get("/api/v1/health", headers={"origin": "http://localhost:8081"})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
