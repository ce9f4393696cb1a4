from __future__ import annotations

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.auth import security
from dbmonitor.auth.enums import ApprovalStatus
from dbmonitor.auth.models import User
from dbmonitor.auth.schemas import UserContext
from dbmonitor.db.dependencies import get_db_session
from dbmonitor.utils import TokenInvalid, Unauthorized, ServiceError, as_http_exception

# --- Bearer scheme ---
# auto_error is off so a missing header is reported with our own error body
bearer_scheme = HTTPBearer(auto_error=False)


async def authenticate(session: AsyncSession, token: str) -> UserContext:
    """
    Resolve a bearer token to the caller's identity.

    Only the user id is taken from the token. Role and approval status
    are read from the user row on every call, so a demotion or revocation
    applies to tokens that were issued before it.
    """
    payload = security.decode_access_token(token)
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise TokenInvalid("Could not validate credentials") from exc

    user = await session.get(User, user_id, populate_existing=True)
    if user is None:
        raise Unauthorized("User not found")
    if user.approval_status != ApprovalStatus.APPROVED:
        raise Unauthorized("Account is not approved")
    return UserContext.model_validate(user)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> UserContext:
    """Dependency that authenticates the request and returns its UserContext."""
    try:
        if credentials is None or not credentials.credentials:
            raise Unauthorized("Authentication required")
        return await authenticate(session, credentials.credentials)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
