from datetime import date, timedelta

import pytest

from main import app as fastapi_app
import db as project_db
from core.errors import DataAccessError


async def _register(async_client, headers, seed, code="DRILL-001", branch_id=None):
    resp = await async_client.post(
        "/api/v1/assets",
        json={
            "asset_code": code,
            "branch_id": branch_id or seed.branch_id,
            "asset_type_id": seed.asset_type_id,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _open(async_client, headers, asset_id, type_id, opened=None):
    return await async_client.post(
        "/api/v1/maintenance",
        json={
            "asset_id": asset_id,
            "maintenance_type_id": type_id,
            "date_opened": (opened or date.today()).isoformat(),
            "notes": "checked in",
        },
        headers=headers,
    )


@pytest.mark.anyio
async def test_health(async_client):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


@pytest.mark.anyio
async def test_register_and_lookup_asset(async_client, admin_headers, operator_headers, seed):
    asset = await _register(async_client, admin_headers, seed)
    assert asset["state"] == "AVAILABLE"
    assert asset["is_active"] is True

    resp = await async_client.get(f"/api/v1/assets/{asset['id']}", headers=operator_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["asset_code"] == "DRILL-001"

    resp = await async_client.get("/api/v1/assets/by-code/DRILL-001", headers=operator_headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == asset["id"]

    resp = await async_client.get("/api/v1/assets/by-code/NOPE", headers=operator_headers)
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_register_asset_rules(async_client, admin_headers, operator_headers, seed):
    payload = {"asset_code": "GEN-1", "branch_id": seed.branch_id, "asset_type_id": seed.asset_type_id}

    resp = await async_client.post("/api/v1/assets", json=payload, headers=operator_headers)
    assert resp.status_code == 403

    resp = await async_client.post("/api/v1/assets", json=payload, headers=admin_headers)
    assert resp.status_code == 201

    resp = await async_client.post("/api/v1/assets", json=payload, headers=admin_headers)
    assert resp.status_code == 409

    resp = await async_client.post(
        "/api/v1/assets",
        json={**payload, "asset_code": "GEN-2", "branch_id": 9999},
        headers=admin_headers,
    )
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_maintenance_flow_over_http(async_client, admin_headers, operator_headers, seed):
    asset = await _register(async_client, admin_headers, seed)

    resp = await _open(async_client, operator_headers, asset["id"], seed.preventive_id)
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["asset"]["state"] == "IN_MAINTENANCE"
    assert body["event"]["performed_by_id"] == seed.operator.id
    event_id = body["event"]["id"]

    resp = await _open(async_client, operator_headers, asset["id"], seed.preventive_id)
    assert resp.status_code == 409

    resp = await async_client.post(
        f"/api/v1/maintenance/{event_id}/notes",
        json={"text": "waiting for parts"},
        headers=operator_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["notes"] == "checked in\nwaiting for parts"

    resp = await async_client.post(
        f"/api/v1/maintenance/{event_id}/close",
        json={"date_closed": date.today().isoformat()},
        headers=operator_headers,
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["asset"]["state"] == "READY_FOR_PICKUP"

    resp = await async_client.post(f"/api/v1/assets/{asset['id']}/return", headers=operator_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["asset"]["state"] == "AVAILABLE"
    assert resp.json()["event"] is None

    resp = await async_client.post(f"/api/v1/assets/{asset['id']}/return", headers=operator_headers)
    assert resp.status_code == 409

    resp = await async_client.get(f"/api/v1/assets/{asset['id']}/history", headers=operator_headers)
    assert resp.status_code == 200
    history = resp.json()
    assert [e["id"] for e in history] == [event_id]
    assert history[0]["date_closed"] == date.today().isoformat()


@pytest.mark.anyio
async def test_close_errors(async_client, admin_headers, seed):
    asset = await _register(async_client, admin_headers, seed)
    opened = date.today()
    resp = await _open(async_client, admin_headers, asset["id"], seed.preventive_id, opened)
    event_id = resp.json()["event"]["id"]

    resp = await async_client.post(
        f"/api/v1/maintenance/{event_id}/close",
        json={"date_closed": (opened - timedelta(days=1)).isoformat()},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await async_client.post(
        "/api/v1/maintenance/9999/close",
        json={"date_closed": opened.isoformat()},
        headers=admin_headers,
    )
    assert resp.status_code == 404

    resp = await async_client.post(
        f"/api/v1/maintenance/{event_id}/close",
        json={"date_closed": opened.isoformat(), "final": True},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["asset"]["state"] == "DEACTIVATED"
    assert resp.json()["asset"]["is_active"] is False

    resp = await _open(async_client, admin_headers, asset["id"], seed.preventive_id)
    assert resp.status_code == 409


@pytest.mark.anyio
async def test_operator_is_pinned_to_own_branch(async_client, admin_headers, operator_headers, manager_headers, seed):
    foreign = await _register(async_client, admin_headers, seed, code="FAR-1", branch_id=seed.other_branch_id)

    resp = await async_client.get(f"/api/v1/assets/{foreign['id']}", headers=operator_headers)
    assert resp.status_code == 403

    resp = await _open(async_client, operator_headers, foreign["id"], seed.preventive_id)
    assert resp.status_code == 403

    resp = await async_client.get(
        f"/api/v1/assets?branch_id={seed.other_branch_id}", headers=operator_headers
    )
    assert resp.status_code == 403

    resp = await async_client.get("/api/v1/assets", headers=operator_headers)
    assert resp.status_code == 200
    assert resp.json() == []

    resp = await _open(async_client, manager_headers, foreign["id"], seed.preventive_id)
    assert resp.status_code == 201
    event_id = resp.json()["event"]["id"]

    resp = await async_client.get(f"/api/v1/maintenance/{event_id}", headers=operator_headers)
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_bulk_pickup(async_client, admin_headers, seed):
    ids = []
    for n in range(3):
        asset = await _register(async_client, admin_headers, seed, code=f"MIX-{n}")
        resp = await _open(async_client, admin_headers, asset["id"], seed.cleaning_id)
        event_id = resp.json()["event"]["id"]
        await async_client.post(
            f"/api/v1/maintenance/{event_id}/close",
            json={"date_closed": date.today().isoformat()},
            headers=admin_headers,
        )
        ids.append(asset["id"])

    resp = await async_client.post("/api/v1/assets/return", json={"asset_ids": ids}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert [r["asset"]["state"] for r in resp.json()] == ["AVAILABLE"] * 3

    resp = await async_client.post("/api/v1/assets/return", json={"asset_ids": ids}, headers=admin_headers)
    assert resp.status_code == 409


@pytest.mark.anyio
async def test_list_open_events(async_client, admin_headers, seed):
    first = await _register(async_client, admin_headers, seed, code="A-1")
    second = await _register(async_client, admin_headers, seed, code="A-2")
    await _open(async_client, admin_headers, first["id"], seed.preventive_id)
    resp = await _open(async_client, admin_headers, second["id"], seed.preventive_id)
    await async_client.post(
        f"/api/v1/maintenance/{resp.json()['event']['id']}/close",
        json={"date_closed": date.today().isoformat()},
        headers=admin_headers,
    )

    resp = await async_client.get("/api/v1/maintenance?status=open", headers=admin_headers)
    assert resp.status_code == 200
    assert [e["asset_id"] for e in resp.json()] == [first["id"]]

    resp = await async_client.get("/api/v1/maintenance", headers=admin_headers)
    assert len(resp.json()) == 2


@pytest.mark.anyio
async def test_upcoming_schedule(async_client, admin_headers, seed):
    asset = await _register(async_client, admin_headers, seed)
    opened = date.today() - timedelta(days=36)
    resp = await _open(async_client, admin_headers, asset["id"], seed.preventive_id, opened)
    await async_client.post(
        f"/api/v1/maintenance/{resp.json()['event']['id']}/close",
        json={"date_closed": (opened + timedelta(days=1)).isoformat()},
        headers=admin_headers,
    )
    await async_client.post(f"/api/v1/assets/{asset['id']}/return", headers=admin_headers)

    resp = await async_client.get("/api/v1/schedule/upcoming", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["interval_days"] == 30
    assert body["total"] == 1
    assert body["by_urgency"]["CRITICAL"] == 1
    assert body["items"][0]["days_remaining"] == -5
    assert body["items"][0]["urgency"] == "CRITICAL"

    resp = await async_client.get("/api/v1/schedule/upcoming?interval_days=40", headers=admin_headers)
    assert resp.json()["items"][0]["urgency"] == "MEDIUM"


@pytest.mark.anyio
async def test_dashboard_is_cached_until_invalidated(async_client, admin_headers, operator_headers, seed):
    resp = await async_client.get("/api/v1/dashboard/trend", headers=operator_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["months"] == 6
    assert len(body["buckets"]) == 6
    assert body["cached"] is False
    assert sum(b["count"] for b in body["buckets"]) == 0

    asset = await _register(async_client, admin_headers, seed)
    await _open(async_client, admin_headers, asset["id"], seed.preventive_id)

    resp = await async_client.get("/api/v1/dashboard/trend", headers=operator_headers)
    body = resp.json()
    assert body["cached"] is True
    assert body["buckets"][-1]["count"] == 0

    resp = await async_client.post("/api/v1/dashboard/cache/invalidate", headers=operator_headers)
    assert resp.status_code == 403
    resp = await async_client.post("/api/v1/dashboard/cache/invalidate", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["removed"] == 1

    resp = await async_client.get("/api/v1/dashboard/trend", headers=operator_headers)
    body = resp.json()
    assert body["cached"] is False
    assert body["buckets"][-1]["count"] == 1
    assert body["buckets"][-1]["trend"] == "up"


@pytest.mark.anyio
async def test_dashboard_overview_and_categories(async_client, admin_headers, seed):
    asset = await _register(async_client, admin_headers, seed)
    await _open(async_client, admin_headers, asset["id"], seed.corrective_id)

    resp = await async_client.get("/api/v1/dashboard/overview", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total_assets"] == 1
    assert body["assets_by_state"]["IN_MAINTENANCE"] == 1
    assert body["open_events"] == 1
    assert len(body["recent_events"]) == 1
    assert "generated_at" in body

    resp = await async_client.get("/api/v1/dashboard/categories", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["basis"] == "based on last 1 events"
    assert body["items"] == [{"name": "Corrective", "count": 1, "percentage": 100}]

    resp = await async_client.get("/api/v1/dashboard/trend?months=30", headers=admin_headers)
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_report_reads_fresh_and_flags_truncation(async_client, admin_headers, seed):
    for n in range(3):
        asset = await _register(async_client, admin_headers, seed, code=f"R-{n}")
        await _open(async_client, admin_headers, asset["id"], seed.preventive_id)

    # Warm the dashboard cache; the report must not be affected by it
    await async_client.get("/api/v1/dashboard/overview", headers=admin_headers)

    resp = await async_client.get("/api/v1/reports/maintenance?limit=2", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total_matching"] == 3
    assert body["returned"] == 2
    assert body["truncated"] is True
    row = body["rows"][0]
    assert row["branch"] == "Central"
    assert row["asset_type"] == "Hammer drill"
    assert row["maintenance_type"] == "Preventive"
    assert row["performed_by"] == "Test Admin"
    assert row["status"] == "open"

    asset = await _register(async_client, admin_headers, seed, code="R-late")
    await _open(async_client, admin_headers, asset["id"], seed.cleaning_id)
    resp = await async_client.get("/api/v1/reports/maintenance", headers=admin_headers)
    body = resp.json()
    assert body["total_matching"] == 4
    assert body["truncated"] is False


@pytest.mark.anyio
async def test_report_filters_by_performer(async_client, admin_headers, operator_headers, seed):
    mine = await _register(async_client, admin_headers, seed, code="P-op")
    theirs = await _register(async_client, admin_headers, seed, code="P-admin")
    resp = await _open(async_client, operator_headers, mine["id"], seed.preventive_id)
    assert resp.status_code == 201, resp.text
    resp = await _open(async_client, admin_headers, theirs["id"], seed.preventive_id)
    assert resp.status_code == 201, resp.text

    resp = await async_client.get(
        f"/api/v1/reports/maintenance?performed_by_id={seed.operator.id}",
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["total_matching"] == 1
    assert [row["asset_code"] for row in body["rows"]] == ["P-op"]


@pytest.mark.anyio
async def test_data_access_failure_is_503(async_client, admin_headers):
    class BrokenStore:
        page_size = 1000

        async def query(self, descriptor, limit, offset):
            raise DataAccessError("connection refused")

        async def count(self, descriptor):
            raise DataAccessError("connection refused")

    fastapi_app.dependency_overrides[project_db.get_store] = lambda: BrokenStore()
    resp = await async_client.get("/api/v1/reports/maintenance", headers=admin_headers)
    assert resp.status_code == 503
    assert resp.json()["retryable"] is True
