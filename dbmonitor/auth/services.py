from __future__ import annotations

import datetime
from typing import Dict, FrozenSet, List, Optional, Tuple

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dbmonitor.audit.enums import AuditStatus
from dbmonitor.audit.services import record_event
from dbmonitor.auth import security
from dbmonitor.auth.enums import ApprovalStatus, UserRole
from dbmonitor.auth.models import User
from dbmonitor.auth.schemas import UserCreate
from dbmonitor.utils import (
    AccountNotApproved,
    DuplicateEmail,
    InvalidCredentials,
    InvalidTransition,
    _get_or_404,
)

# Statuses an admin may move an account to from each current status.
APPROVAL_TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset({ApprovalStatus.REJECTED}),
    ApprovalStatus.REJECTED: frozenset({ApprovalStatus.APPROVED}),
}


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---- Users ----
async def get_user(session: AsyncSession, user_id: int) -> User:
    return await _get_or_404(session, User, user_id)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == normalize_email(email))
    result = await session.execute(q)
    return result.scalars().first()


async def list_users(session: AsyncSession) -> List[User]:
    q = select(User).order_by(User.created_at.desc(), User.id.desc())
    result = await session.execute(q)
    return list(result.scalars().all())


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    name: str,
    role: UserRole = UserRole.USER,
    approval_status: ApprovalStatus = ApprovalStatus.PENDING,
) -> User:
    """Creates a new user with a hashed password."""
    email = normalize_email(email)
    if await get_user_by_email(session, email) is not None:
        raise DuplicateEmail("Email already registered")

    user = User(
        email=email,
        password_hash=security.get_password_hash(password),
        name=name,
        role=role,
        approval_status=approval_status,
    )
    session.add(user)
    try:
        await session.flush()  # push so integrity errors surface
    except IntegrityError as exc:
        # lost a race with a concurrent registration for the same address
        raise DuplicateEmail("Email already registered") from exc
    await session.refresh(user)
    return user


# ---- Authentication ----
async def register(
    session: AsyncSession, *, email: str, password: str, name: str
) -> User:
    """Public self-registration: the account waits for admin approval."""
    user = await create_user(session, email=email, password=password, name=name)
    await record_event(
        session, action="user.register", user_id=user.id, entity="user", entity_id=user.id,
    )
    return user


async def authenticate_user(
    session: AsyncSession, email: str, password: str
) -> User:
    """
    Check credentials and approval status.

    Unknown email and wrong password raise the same error. Accounts that
    are not approved are refused whatever password was supplied.
    """
    user = await get_user_by_email(session, email)
    if user is None:
        raise InvalidCredentials("Invalid email or password")
    if user.approval_status != ApprovalStatus.APPROVED:
        raise AccountNotApproved(
            f"Account is {user.approval_status.value}",
            status=user.approval_status.value,
        )
    if not security.verify_password(password, user.password_hash):
        raise InvalidCredentials("Invalid email or password")
    return user


async def login(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    ip_address: Optional[str] = None,
) -> Tuple[str, User]:
    user = await authenticate_user(session, email, password)

    user.last_login = datetime.datetime.now(tz=datetime.timezone.utc)
    session.add(user)
    await session.flush()
    await session.refresh(user)

    token = security.create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )
    await record_event(
        session,
        action="user.login",
        user_id=user.id,
        entity="user",
        entity_id=user.id,
        ip_address=ip_address,
    )
    return token, user


async def record_failed_login(
    session_factory: async_sessionmaker,
    *,
    email: str,
    reason: str,
    ip_address: Optional[str] = None,
) -> None:
    """
    Audit a refused login in a transaction of its own.

    The request's session is rolled back when the login error propagates,
    so the event cannot be written there.
    """
    async with session_factory() as session:
        user = await get_user_by_email(session, email)
        await record_event(
            session,
            action="user.login_failed",
            user_id=user.id if user else None,
            entity="user",
            entity_id=user.id if user else None,
            details={"email": normalize_email(email), "reason": reason},
            status=AuditStatus.FAILED,
            ip_address=ip_address,
        )
        await session.commit()


# ---- Approval and roles ----
async def set_approval_status(
    session: AsyncSession,
    user_id: int,
    new_status: ApprovalStatus,
    *,
    actor_id: int,
) -> User:
    user = await get_user(session, user_id)
    current = user.approval_status
    if current == new_status:
        return user
    if new_status not in APPROVAL_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot move account from {current.value} to {new_status.value}"
        )

    user.approval_status = new_status
    session.add(user)
    await session.flush()
    await session.refresh(user)
    await record_event(
        session,
        action=f"user.{'approve' if new_status == ApprovalStatus.APPROVED else 'reject'}",
        user_id=actor_id,
        entity="user",
        entity_id=user.id,
        details={"from": current.value, "to": new_status.value},
    )
    return user


async def update_user_role(
    session: AsyncSession,
    user_id: int,
    new_role: UserRole,
    *,
    actor_id: int,
) -> User:
    """Update a user's global role. Only approved accounts carry a role change."""
    user = await get_user(session, user_id)
    if user.approval_status != ApprovalStatus.APPROVED:
        raise InvalidTransition("Role can only be changed on an approved user")
    if user.role == new_role:
        return user

    previous = user.role
    user.role = new_role
    session.add(user)
    await session.flush()
    await session.refresh(user)
    await record_event(
        session,
        action="user.role_change",
        user_id=actor_id,
        entity="user",
        entity_id=user.id,
        details={"from": previous.value, "to": new_role.value},
    )
    return user


async def ensure_admin(
    session: AsyncSession, *, email: str, password: str, name: str
) -> Optional[User]:
    """
    Create an approved admin if the address is unused. Returns the new user.

    The credentials go through the same validation as self-registration,
    so the bootstrapped account is always able to log in.
    pydantic.ValidationError is raised otherwise.
    """
    credentials = UserCreate(email=email, password=password, name=name)
    if await get_user_by_email(session, str(credentials.email)) is not None:
        return None
    user = await create_user(
        session,
        email=str(credentials.email),
        password=credentials.password,
        name=credentials.name,
        role=UserRole.ADMIN,
        approval_status=ApprovalStatus.APPROVED,
    )
    logger.info("Bootstrapped admin {}", user.email)
    return user
