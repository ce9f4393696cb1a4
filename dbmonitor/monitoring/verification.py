from __future__ import annotations

import datetime
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.audit.services import record_event
from dbmonitor.auth.schemas import UserContext
from dbmonitor.monitoring import services
from dbmonitor.monitoring.enums import CheckKind, VerificationStatus
from dbmonitor.monitoring.models import DailyCheck, WeeklyCheck
from dbmonitor.utils import InvalidTransition, NotFound

CheckRecord = Union[DailyCheck, WeeklyCheck]

# Verified records are final; a rejected record can still be verified after review.
VERIFICATION_TRANSITIONS: Dict[VerificationStatus, FrozenSet[VerificationStatus]] = {
    VerificationStatus.PENDING: frozenset({VerificationStatus.VERIFIED, VerificationStatus.REJECTED}),
    VerificationStatus.REJECTED: frozenset({VerificationStatus.VERIFIED}),
    VerificationStatus.VERIFIED: frozenset(),
}


def plan_transition(current: VerificationStatus, target: VerificationStatus) -> bool:
    """
    Return True if the record must change, False for a same-state no-op.

    :raises InvalidTransition: the move is not in VERIFICATION_TRANSITIONS.
    """
    if current == target:
        return False
    if target not in VERIFICATION_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot move a {current.value} record to {target.value}",
            current=current.value,
            target=target.value,
        )
    return True


async def _lock(session: AsyncSession, model, record_id: int) -> CheckRecord:
    q = select(model).where(model.id == record_id)
    if session.get_bind().dialect.name == "postgresql":
        q = q.with_for_update()
    result = await session.execute(q.execution_options(populate_existing=True))
    record = result.scalars().first()
    if record is None:
        raise NotFound(f"{model.__name__} {record_id} not found")
    return record


async def _transition(
    session: AsyncSession,
    model,
    record_id: int,
    target: VerificationStatus,
    *,
    verifier: UserContext,
    comment: Optional[str],
) -> None:
    record = await _lock(session, model, record_id)
    current = record.verification_status
    if not plan_transition(current, target):
        logger.debug("{} {} already {}", model.__name__, record_id, target.value)
        return

    record.verification_status = target
    record.verified_by = verifier.id
    record.verified_at = datetime.datetime.now(tz=datetime.timezone.utc)
    record.verification_comment = comment
    session.add(record)
    await session.flush()

    entity = model.__tablename__[:-1]  # daily_checks -> daily_check
    await record_event(
        session,
        action=f"{entity}.{'verify' if target == VerificationStatus.VERIFIED else 'reject'}",
        user_id=verifier.id,
        entity=entity,
        entity_id=record_id,
        details={"from": current.value, "to": target.value, "comment": comment},
    )


async def verify_daily_check(
    session: AsyncSession, record_id: int, *, verifier: UserContext, comment: Optional[str] = None
) -> DailyCheck:
    await _transition(
        session, DailyCheck, record_id, VerificationStatus.VERIFIED, verifier=verifier, comment=comment,
    )
    return await services.get_daily_check(session, record_id)


async def reject_daily_check(
    session: AsyncSession, record_id: int, *, verifier: UserContext, comment: Optional[str] = None
) -> DailyCheck:
    await _transition(
        session, DailyCheck, record_id, VerificationStatus.REJECTED, verifier=verifier, comment=comment,
    )
    return await services.get_daily_check(session, record_id)


async def verify_weekly_check(
    session: AsyncSession, record_id: int, *, verifier: UserContext, comment: Optional[str] = None
) -> WeeklyCheck:
    await _transition(
        session, WeeklyCheck, record_id, VerificationStatus.VERIFIED, verifier=verifier, comment=comment,
    )
    return await services.get_weekly_check(session, record_id)


async def reject_weekly_check(
    session: AsyncSession, record_id: int, *, verifier: UserContext, comment: Optional[str] = None
) -> WeeklyCheck:
    await _transition(
        session, WeeklyCheck, record_id, VerificationStatus.REJECTED, verifier=verifier, comment=comment,
    )
    return await services.get_weekly_check(session, record_id)


async def list_pending(
    session: AsyncSession, kind: Optional[CheckKind] = None
) -> Tuple[List[DailyCheck], List[WeeklyCheck]]:
    """Records waiting for an admin decision, in the store's usual order."""
    daily: List[DailyCheck] = []
    weekly: List[WeeklyCheck] = []
    if kind in (None, CheckKind.DAILY):
        daily = await services.query_daily(
            session, verification_status=VerificationStatus.PENDING,
        )
    if kind in (None, CheckKind.WEEKLY):
        weekly = await services.query_weekly(
            session, verification_status=VerificationStatus.PENDING,
        )
    return daily, weekly
