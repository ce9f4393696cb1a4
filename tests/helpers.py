from datetime import date
from typing import Dict, Optional

from httpx import AsyncClient

from dbmonitor.auth.enums import UserRole

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass-123"


async def login(client: AsyncClient, email: str, password: str) -> Dict[str, str]:
    resp = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


async def register(client: AsyncClient, email: str, password: str = "pw123456", name: str = "Op") -> int:
    resp = await client.post(
        "/api/auth/register", json={"email": email, "password": password, "name": name},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


async def approved_user(
    client: AsyncClient,
    admin_headers: Dict[str, str],
    email: str,
    password: str = "pw123456",
    role: Optional[UserRole] = None,
) -> Dict[str, str]:
    """Register, approve (and optionally promote) a user, then log in as them."""
    user_id = await register(client, email, password)
    resp = await client.put(f"/api/users/{user_id}/approve", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    if role is not None:
        resp = await client.put(
            f"/api/users/{user_id}/role", json={"role": role.value}, headers=admin_headers,
        )
        assert resp.status_code == 200, resp.text
    return await login(client, email, password)


async def check_type_id(client: AsyncClient, headers: Dict[str, str], name: str) -> int:
    resp = await client.get("/api/check-types", headers=headers)
    assert resp.status_code == 200, resp.text
    return next(ct["id"] for ct in resp.json() if ct["name"] == name)


async def submit_daily(
    client: AsyncClient,
    headers: Dict[str, str],
    *,
    database_id: str = "cprdb",
    check: str = "DB Instance Availability",
    status: str = "pass",
    check_date: Optional[date] = None,
    value: Optional[str] = None,
    comment: Optional[str] = None,
):
    return await client.post(
        "/api/daily-checks",
        json={
            "database_id": database_id,
            "check_type_id": await check_type_id(client, headers, check),
            "check_date": (check_date or date.today()).isoformat(),
            "status": status,
            "value": value,
            "comment": comment,
        },
        headers=headers,
    )
