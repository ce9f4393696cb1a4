from datetime import datetime

import pytest
from httpx import AsyncClient

from dbmonitor.auth.enums import UserRole
from dbmonitor.monitoring.enums import VerificationStatus
from dbmonitor.monitoring.verification import VERIFICATION_TRANSITIONS, plan_transition
from dbmonitor.utils import InvalidTransition
from tests.helpers import approved_user, submit_daily


@pytest.mark.parametrize(
    "current,target,changes",
    [
        (VerificationStatus.PENDING, VerificationStatus.VERIFIED, True),
        (VerificationStatus.PENDING, VerificationStatus.REJECTED, True),
        (VerificationStatus.REJECTED, VerificationStatus.VERIFIED, True),
        (VerificationStatus.VERIFIED, VerificationStatus.VERIFIED, False),
        (VerificationStatus.REJECTED, VerificationStatus.REJECTED, False),
    ],
)
def test_plan_transition_allowed(current, target, changes) -> None:
    assert plan_transition(current, target) is changes


@pytest.mark.parametrize(
    "current,target",
    [
        (VerificationStatus.VERIFIED, VerificationStatus.REJECTED),
        (VerificationStatus.VERIFIED, VerificationStatus.PENDING),
        (VerificationStatus.REJECTED, VerificationStatus.PENDING),
    ],
)
def test_plan_transition_refused(current, target) -> None:
    with pytest.raises(InvalidTransition):
        plan_transition(current, target)


def test_every_status_has_transitions() -> None:
    assert set(VERIFICATION_TRANSITIONS) == set(VerificationStatus)


@pytest.mark.anyio
async def test_reject_then_verify(client: AsyncClient, user_headers, admin_headers) -> None:
    record = (await submit_daily(client, user_headers, status="fail")).json()

    resp = await client.put(
        f"/api/daily-checks/{record['id']}/reject",
        json={"comment": "value missing"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    rejected = resp.json()
    assert rejected["verification_status"] == "rejected"
    assert rejected["verification_comment"] == "value missing"
    assert rejected["verified_by_name"] == "Admin"
    assert rejected["verified_at"] is not None

    second_admin = await approved_user(
        client, admin_headers, "lead@example.com", role=UserRole.ADMIN,
    )
    resp = await client.put(
        f"/api/daily-checks/{record['id']}/verify", json={"comment": "fixed"}, headers=second_admin,
    )
    assert resp.status_code == 200
    verified = resp.json()
    assert verified["verification_status"] == "verified"
    assert verified["verification_comment"] == "fixed"
    assert verified["verified_by"] != rejected["verified_by"]
    assert verified["verified_by_name"] == "Op"
    assert datetime.fromisoformat(verified["verified_at"]) > datetime.fromisoformat(
        rejected["verified_at"]
    )


@pytest.mark.anyio
async def test_verified_record_cannot_be_rejected(
    client: AsyncClient, user_headers, admin_headers
) -> None:
    record = (await submit_daily(client, user_headers)).json()
    await client.put(f"/api/daily-checks/{record['id']}/verify", headers=admin_headers)

    resp = await client.put(f"/api/daily-checks/{record['id']}/reject", headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["kind"] == "InvalidTransition"

    # same-state request keeps the first decision
    resp = await client.put(
        f"/api/daily-checks/{record['id']}/verify", json={"comment": "again"}, headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["verification_comment"] is None


@pytest.mark.anyio
async def test_unknown_record_is_not_found(client: AsyncClient, admin_headers) -> None:
    resp = await client.put("/api/daily-checks/31337/verify", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["kind"] == "NotFound"

    resp = await client.put("/api/weekly-checks/31337/reject", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.anyio
async def test_only_admins_verify(client: AsyncClient, user_headers) -> None:
    record = (await submit_daily(client, user_headers)).json()
    resp = await client.put(f"/api/daily-checks/{record['id']}/verify", headers=user_headers)
    assert resp.status_code == 403
    assert resp.json()["kind"] == "Forbidden"


@pytest.mark.anyio
async def test_weekly_verification(client: AsyncClient, user_headers, admin_headers) -> None:
    resp = await client.post(
        "/api/weekly-checks",
        json={"database_id": "cpsdb", "week_number": 10, "year": 2024, "status": "warning"},
        headers=user_headers,
    )
    record = resp.json()
    resp = await client.put(f"/api/weekly-checks/{record['id']}/verify", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["verification_status"] == "verified"

    resp = await client.put(f"/api/weekly-checks/{record['id']}/reject", headers=admin_headers)
    assert resp.status_code == 409


@pytest.mark.anyio
async def test_pending_queue(client: AsyncClient, user_headers, admin_headers) -> None:
    first = (await submit_daily(client, user_headers, check="DB Jobs")).json()
    second = (await submit_daily(client, user_headers, check="Listener Status")).json()
    await client.post(
        "/api/weekly-checks",
        json={"database_id": "cprdb", "week_number": 3, "year": 2024},
        headers=user_headers,
    )
    await client.put(f"/api/daily-checks/{first['id']}/verify", headers=admin_headers)

    resp = await client.get("/api/verifications/pending", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [r["id"] for r in body["daily"]] == [second["id"]]
    assert len(body["weekly"]) == 1

    resp = await client.get(
        "/api/verifications/pending", params={"kind": "daily"}, headers=admin_headers,
    )
    assert resp.json()["weekly"] == []

    assert (
        await client.get("/api/verifications/pending", headers=user_headers)
    ).status_code == 403
