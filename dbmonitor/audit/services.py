from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.audit.enums import AuditStatus
from dbmonitor.audit.models import AuditEvent


async def record_event(
    session: AsyncSession,
    *,
    action: str,
    user_id: Optional[int] = None,
    entity: Optional[str] = None,
    entity_id: Any = None,
    details: Optional[Dict[str, Any]] = None,
    status: AuditStatus = AuditStatus.SUCCESS,
    ip_address: Optional[str] = None,
) -> AuditEvent:
    """Add an audit row to the caller's transaction (no commit)."""
    event = AuditEvent(
        user_id=user_id,
        action=action,
        entity=entity,
        entity_id=None if entity_id is None else str(entity_id),
        details=details,
        status=AuditStatus(status).value,
        ip_address=ip_address,
    )
    session.add(event)
    await session.flush()
    logger.info(
        "audit: {} ({}) by user={} on {}:{}",
        action, event.status, user_id, entity, event.entity_id,
    )
    return event


async def list_events(
    session: AsyncSession,
    *,
    user_id: Optional[int] = None,
    action: Optional[str] = None,
    status: Optional[AuditStatus] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[AuditEvent]:
    q = select(AuditEvent)
    if user_id is not None:
        q = q.where(AuditEvent.user_id == user_id)
    if action is not None:
        q = q.where(AuditEvent.action == action)
    if status is not None:
        q = q.where(AuditEvent.status == AuditStatus(status).value)
    q = q.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
    q = q.offset(offset).limit(limit)
    result = await session.execute(q)
    return list(result.scalars().all())
