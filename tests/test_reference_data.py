import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.monitoring.catalog import DEFAULT_DATABASES, check_type_definitions
from dbmonitor.monitoring.models import CheckType, Database
from dbmonitor.monitoring.services import seed_reference_data

NEW_DB = {
    "id": "cppdb",
    "name": "Pilot Database",
    "short_code": "CPPDB",
    "instance_name": "CPPDB01",
    "type": "pilot",
}


@pytest.mark.anyio
async def test_seed_is_idempotent(dbsession: AsyncSession) -> None:
    assert await seed_reference_data(dbsession) == 0

    databases = await dbsession.scalar(select(func.count(Database.id)))
    check_types = await dbsession.scalar(select(func.count(CheckType.id)))
    assert databases == len(DEFAULT_DATABASES)
    assert check_types == len(check_type_definitions())


@pytest.mark.anyio
async def test_list_databases_by_name(client: AsyncClient, user_headers) -> None:
    resp = await client.get("/api/databases", headers=user_headers)
    assert resp.status_code == 200
    names = [db["name"] for db in resp.json()]
    assert names == sorted(names)
    assert len(names) == len(DEFAULT_DATABASES)


@pytest.mark.anyio
async def test_reference_data_requires_login(client: AsyncClient) -> None:
    assert (await client.get("/api/databases")).status_code == 401
    assert (await client.get("/api/check-types")).status_code == 401


@pytest.mark.anyio
async def test_create_and_deactivate_database(
    client: AsyncClient, admin_headers, user_headers
) -> None:
    assert (
        await client.post("/api/databases", json=NEW_DB, headers=user_headers)
    ).status_code == 403

    resp = await client.post("/api/databases", json=NEW_DB, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json()["is_active"] is True

    resp = await client.post("/api/databases", json=NEW_DB, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["kind"] == "Conflict"

    clash = {**NEW_DB, "id": "cppdb2"}
    resp = await client.post("/api/databases", json=clash, headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.delete("/api/databases/cppdb", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    ids = [db["id"] for db in (await client.get("/api/databases", headers=user_headers)).json()]
    assert "cppdb" not in ids


@pytest.mark.anyio
async def test_inactive_database_refuses_checks(client: AsyncClient, admin_headers) -> None:
    await client.delete("/api/databases/cpgdb", headers=admin_headers)
    check_types = (
        await client.get("/api/check-types", params={"daily": True}, headers=admin_headers)
    ).json()
    resp = await client.post(
        "/api/daily-checks",
        json={
            "database_id": "cpgdb",
            "check_type_id": check_types[0]["id"],
            "check_date": "2024-01-01",
            "status": "pass",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ForeignKeyViolation"


@pytest.mark.anyio
async def test_invalid_database_type(client: AsyncClient, admin_headers) -> None:
    resp = await client.post(
        "/api/databases", json={**NEW_DB, "type": "mainframe"}, headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "ValidationError"


@pytest.mark.anyio
async def test_check_types_filtered_by_database(client: AsyncClient, user_headers) -> None:
    resp = await client.get(
        "/api/check-types", params={"database_id": "dbfw", "daily": True}, headers=user_headers,
    )
    names = [ct["name"] for ct in resp.json()]
    assert "Instance Availability" in names
    assert "Firewall Policies Active" in names
    assert "OMS Status" not in names
    assert all(ct["is_daily"] for ct in resp.json())

    orders = [ct["display_order"] for ct in resp.json()]
    assert orders == sorted(orders)

    resp = await client.get(
        "/api/check-types", params={"database_id": "missing"}, headers=user_headers,
    )
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_create_and_deactivate_check_type(client: AsyncClient, admin_headers) -> None:
    payload = {
        "name": "Redo Log Switches",
        "description": "Count log switches per hour",
        "applicable_database_types": ["primary", "standby"],
        "display_order": 20,
    }
    resp = await client.post("/api/check-types", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    created = resp.json()
    assert created["applicable_database_types"] == ["primary", "standby"]
    assert created["is_daily"] and not created["is_weekly"]

    resp = await client.post("/api/check-types", json=payload, headers=admin_headers)
    assert resp.status_code == 409

    resp = await client.post(
        "/api/check-types",
        json={**payload, "name": "Nothing", "is_daily": False},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = await client.delete(f"/api/check-types/{created['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    names = [ct["name"] for ct in (await client.get("/api/check-types", headers=admin_headers)).json()]
    assert "Redo Log Switches" not in names
