from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.audit import services
from dbmonitor.audit.enums import AuditStatus
from dbmonitor.audit.schemas import AuditEventOut
from dbmonitor.auth.permissions import require_admin
from dbmonitor.auth.schemas import UserContext
from dbmonitor.db.dependencies import get_db_session

router = APIRouter()


@router.get("/audit-log", response_model=List[AuditEventOut])
async def list_audit_events(
    user_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    status: Optional[AuditStatus] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.list_events(
        session, user_id=user_id, action=action, status=status, limit=limit, offset=offset,
    )
