from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.auth import services
from dbmonitor.auth.enums import ApprovalStatus
from dbmonitor.auth.permissions import require_admin, require_user
from dbmonitor.auth.schemas import (
    LoginIn,
    RoleUpdate,
    Token,
    UserContext,
    UserCreate,
    UserOut,
)
from dbmonitor.db.dependencies import get_db_session
from dbmonitor.utils import AccountNotApproved, InvalidCredentials, translate_service_errors

router = APIRouter()


# -----------------------
# Authentication endpoints
# -----------------------
@router.post("/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@translate_service_errors
async def register_user(
    payload: UserCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """Public endpoint for user registration. New accounts start as pending."""
    return await services.register(
        session,
        email=str(payload.email),
        password=payload.password,
        name=payload.name,
    )


@router.post("/auth/login", response_model=Token)
@translate_service_errors
async def login(
    payload: LoginIn,
    request: Request,
    session: AsyncSession = Depends(get_db_session),
):
    """Exchange email and password for a bearer token."""
    ip_address = request.client.host if request.client else None
    try:
        token, user = await services.login(
            session,
            email=str(payload.email),
            password=payload.password,
            ip_address=ip_address,
        )
    except (InvalidCredentials, AccountNotApproved) as exc:
        await services.record_failed_login(
            request.app.state.db_session_factory,
            email=str(payload.email),
            reason=exc.kind,
            ip_address=ip_address,
        )
        raise
    return Token(token=token, user=UserOut.model_validate(user))


@router.get("/auth/me", response_model=UserOut)
@translate_service_errors
async def read_users_me(
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.get_user(session, current_user.id)


# -----------------------
# User management (admin)
# -----------------------
@router.get("/users", response_model=List[UserOut])
@translate_service_errors
async def list_users(
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.list_users(session)


@router.put("/users/{user_id}/approve", response_model=UserOut)
@translate_service_errors
async def approve_user(
    user_id: int,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.set_approval_status(
        session, user_id, ApprovalStatus.APPROVED, actor_id=current_user.id,
    )


@router.put("/users/{user_id}/reject", response_model=UserOut)
@translate_service_errors
async def reject_user(
    user_id: int,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.set_approval_status(
        session, user_id, ApprovalStatus.REJECTED, actor_id=current_user.id,
    )


@router.put("/users/{user_id}/role", response_model=UserOut)
@translate_service_errors
async def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Promote or demote an approved user."""
    return await services.update_user_role(
        session, user_id, payload.role, actor_id=current_user.id,
    )
