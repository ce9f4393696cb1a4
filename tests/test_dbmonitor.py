import pytest
from fastapi import FastAPI
from httpx import AsyncClient
from pydantic import ValidationError
from starlette import status

from dbmonitor.auth.enums import UserRole
from dbmonitor.auth.permissions import authorize, has_role
from dbmonitor.auth.schemas import UserContext
from dbmonitor.utils import Forbidden


def _context(role: UserRole) -> UserContext:
    return UserContext(id=1, email="u@example.com", name="U", role=role, approval_status="approved")


@pytest.mark.anyio
async def test_health(client: AsyncClient, fastapi_app: FastAPI) -> None:
    """
    Checks the health endpoint.

    :param client: client for the app.
    :param fastapi_app: current FastAPI application.
    """
    url = fastapi_app.url_path_for("health_check")
    response = await client.get(url)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok", "database": "connected"}


@pytest.mark.anyio
async def test_unknown_route_uses_error_body(client: AsyncClient) -> None:
    response = await client.get("/api/nothing-here")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Not Found", "kind": "HTTPError"}


def test_admin_satisfies_every_requirement() -> None:
    admin = _context(UserRole.ADMIN)
    for role in UserRole:
        assert has_role(admin, role)
        authorize(admin, role)


def test_user_is_refused_admin_requirement() -> None:
    user = _context(UserRole.USER)
    authorize(user, UserRole.USER)
    with pytest.raises(Forbidden):
        authorize(user, UserRole.ADMIN)


def test_user_context_is_frozen() -> None:
    ctx = _context(UserRole.USER)
    with pytest.raises(ValidationError):
        ctx.role = UserRole.ADMIN  # type: ignore[misc]
