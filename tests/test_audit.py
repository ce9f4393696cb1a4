import pytest
from httpx import AsyncClient

from tests.helpers import ADMIN_EMAIL, register, submit_daily


@pytest.mark.anyio
async def test_approvals_and_verifications_are_audited(
    client: AsyncClient, admin_headers, user_headers
) -> None:
    user_id = await register(client, "audited@example.com")
    await client.put(f"/api/users/{user_id}/approve", headers=admin_headers)
    record = (await submit_daily(client, user_headers, status="fail")).json()
    await client.put(
        f"/api/daily-checks/{record['id']}/reject", json={"comment": "recheck"}, headers=admin_headers,
    )

    resp = await client.get("/api/audit-log", headers=admin_headers)
    assert resp.status_code == 200
    events = resp.json()
    actions = [e["action"] for e in events]
    for expected in ("user.register", "user.approve", "user.login", "daily_check.submit", "daily_check.reject"):
        assert expected in actions

    approval = next(e for e in events if e["action"] == "user.approve" and e["entity_id"] == str(user_id))
    assert approval["details"] == {"from": "pending", "to": "approved"}

    rejection = next(e for e in events if e["action"] == "daily_check.reject")
    assert rejection["entity_id"] == str(record["id"])
    assert rejection["details"]["comment"] == "recheck"


@pytest.mark.anyio
async def test_audit_log_filters(client: AsyncClient, admin_headers, user_headers) -> None:
    resp = await client.get(
        "/api/audit-log", params={"action": "user.login", "limit": 1}, headers=admin_headers,
    )
    events = resp.json()
    assert len(events) == 1
    assert events[0]["action"] == "user.login"


@pytest.mark.anyio
async def test_audit_log_is_admin_only(client: AsyncClient, user_headers) -> None:
    resp = await client.get("/api/audit-log", headers=user_headers)
    assert resp.status_code == 403


@pytest.mark.anyio
async def test_failed_logins_are_audited(client: AsyncClient, admin_headers) -> None:
    wrong = await client.post(
        "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "not-the-password"},
    )
    assert wrong.status_code == 401
    unknown = await client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "pw123456"},
    )
    assert unknown.status_code == 401
    pending_id = await register(client, "waiting@example.com")
    pending = await client.post(
        "/api/auth/login", json={"email": "waiting@example.com", "password": "pw123456"},
    )
    assert pending.status_code == 403

    resp = await client.get(
        "/api/audit-log", params={"status": "failed"}, headers=admin_headers,
    )
    assert resp.status_code == 200
    events = resp.json()
    assert {e["action"] for e in events} == {"user.login_failed"}
    assert all(e["status"] == "failed" for e in events)
    by_email = {e["details"]["email"]: e for e in events}

    admin_event = by_email[ADMIN_EMAIL]
    assert admin_event["details"]["reason"] == "InvalidCredentials"
    assert admin_event["user_id"] is not None
    assert admin_event["ip_address"] == "127.0.0.1"

    assert by_email["ghost@example.com"]["user_id"] is None
    assert by_email["waiting@example.com"]["user_id"] == pending_id
    assert by_email["waiting@example.com"]["details"]["reason"] == "AccountNotApproved"


@pytest.mark.anyio
async def test_successful_login_records_address(client: AsyncClient, admin_headers) -> None:
    resp = await client.get(
        "/api/audit-log",
        params={"action": "user.login", "status": "success"},
        headers=admin_headers,
    )
    events = resp.json()
    assert events
    assert events[0]["ip_address"] == "127.0.0.1"


@pytest.mark.anyio
async def test_audit_status_filter_is_validated(client: AsyncClient, admin_headers) -> None:
    resp = await client.get(
        "/api/audit-log", params={"status": "maybe"}, headers=admin_headers,
    )
    assert resp.status_code == 400
