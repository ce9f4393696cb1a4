from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.auth.permissions import require_admin, require_user
from dbmonitor.auth.schemas import UserContext
from dbmonitor.db.dependencies import get_db_session
from dbmonitor.monitoring import services, verification
from dbmonitor.monitoring.enums import CheckKind
from dbmonitor.monitoring.schemas import (
    CheckTypeCreate,
    CheckTypeOut,
    DailyCheckIn,
    DailyCheckOut,
    DatabaseCreate,
    DatabaseOut,
    PendingVerificationsOut,
    VerificationIn,
    WeeklyCheckIn,
    WeeklyCheckOut,
)
from dbmonitor.utils import translate_service_errors

router = APIRouter()


# -----------------------
# Databases
# -----------------------
@router.get("/databases", response_model=List[DatabaseOut], tags=["databases"])
@translate_service_errors
async def list_databases(
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.list_databases(session)


@router.get("/databases/{database_id}", response_model=DatabaseOut, tags=["databases"])
@translate_service_errors
async def get_database(
    database_id: str,
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.get_database(session, database_id)


@router.post(
    "/databases",
    response_model=DatabaseOut,
    status_code=status.HTTP_201_CREATED,
    tags=["databases"],
)
@translate_service_errors
async def create_database(
    payload: DatabaseCreate,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.create_database(session, payload, actor_id=current_user.id)


@router.delete("/databases/{database_id}", response_model=DatabaseOut, tags=["databases"])
@translate_service_errors
async def deactivate_database(
    database_id: str,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Soft delete. Recorded checks stay queryable."""
    return await services.deactivate_database(session, database_id, actor_id=current_user.id)


# -----------------------
# Check types
# -----------------------
@router.get("/check-types", response_model=List[CheckTypeOut], tags=["check types"])
@translate_service_errors
async def list_check_types(
    database_id: Optional[str] = Query(None),
    daily: Optional[bool] = Query(None),
    weekly: Optional[bool] = Query(None),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.list_check_types(
        session, database_id=database_id, daily=daily, weekly=weekly,
    )


@router.post(
    "/check-types",
    response_model=CheckTypeOut,
    status_code=status.HTTP_201_CREATED,
    tags=["check types"],
)
@translate_service_errors
async def create_check_type(
    payload: CheckTypeCreate,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.create_check_type(session, payload, actor_id=current_user.id)


@router.delete("/check-types/{check_type_id}", response_model=CheckTypeOut, tags=["check types"])
@translate_service_errors
async def deactivate_check_type(
    check_type_id: int,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.deactivate_check_type(
        session, check_type_id, actor_id=current_user.id,
    )


# -----------------------
# Daily checks
# -----------------------
@router.get("/daily-checks", response_model=List[DailyCheckOut], tags=["daily checks"])
@translate_service_errors
async def list_daily_checks(
    database_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.query_daily(
        session, database_id=database_id, start_date=start_date, end_date=end_date,
    )


@router.post(
    "/daily-checks",
    response_model=DailyCheckOut,
    status_code=status.HTTP_201_CREATED,
    tags=["daily checks"],
)
@translate_service_errors
async def submit_daily_check(
    payload: DailyCheckIn,
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Record a result. Resubmitting the same key overwrites the stored one."""
    return await services.upsert_daily_check(
        session,
        database_id=payload.database_id,
        check_type_id=payload.check_type_id,
        check_date=payload.check_date,
        status=payload.status,
        value=payload.value,
        comment=payload.comment,
        submitter=current_user,
    )


@router.put("/daily-checks/{check_id}/verify", response_model=DailyCheckOut, tags=["daily checks"])
@translate_service_errors
async def verify_daily_check(
    check_id: int,
    payload: Optional[VerificationIn] = None,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await verification.verify_daily_check(
        session, check_id, verifier=current_user, comment=payload.comment if payload else None,
    )


@router.put("/daily-checks/{check_id}/reject", response_model=DailyCheckOut, tags=["daily checks"])
@translate_service_errors
async def reject_daily_check(
    check_id: int,
    payload: Optional[VerificationIn] = None,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await verification.reject_daily_check(
        session, check_id, verifier=current_user, comment=payload.comment if payload else None,
    )


# -----------------------
# Weekly checks
# -----------------------
@router.get("/weekly-checks", response_model=List[WeeklyCheckOut], tags=["weekly checks"])
@translate_service_errors
async def list_weekly_checks(
    database_id: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    week_number: Optional[int] = Query(None, ge=1, le=53),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.query_weekly(
        session, database_id=database_id, year=year, week_number=week_number,
    )


@router.post(
    "/weekly-checks",
    response_model=WeeklyCheckOut,
    status_code=status.HTTP_201_CREATED,
    tags=["weekly checks"],
)
@translate_service_errors
async def submit_weekly_check(
    payload: WeeklyCheckIn,
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    return await services.upsert_weekly_check(session, payload, submitter=current_user)


@router.put("/weekly-checks/{check_id}/verify", response_model=WeeklyCheckOut, tags=["weekly checks"])
@translate_service_errors
async def verify_weekly_check(
    check_id: int,
    payload: Optional[VerificationIn] = None,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await verification.verify_weekly_check(
        session, check_id, verifier=current_user, comment=payload.comment if payload else None,
    )


@router.put("/weekly-checks/{check_id}/reject", response_model=WeeklyCheckOut, tags=["weekly checks"])
@translate_service_errors
async def reject_weekly_check(
    check_id: int,
    payload: Optional[VerificationIn] = None,
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    return await verification.reject_weekly_check(
        session, check_id, verifier=current_user, comment=payload.comment if payload else None,
    )


# -----------------------
# Verification queue (admin)
# -----------------------
@router.get("/verifications/pending", response_model=PendingVerificationsOut, tags=["verification"])
@translate_service_errors
async def list_pending_verifications(
    kind: Optional[CheckKind] = Query(None),
    current_user: UserContext = Depends(require_admin),
    session: AsyncSession = Depends(get_db_session),
):
    daily, weekly = await verification.list_pending(session, kind)
    return PendingVerificationsOut(
        daily=[DailyCheckOut.model_validate(r) for r in daily],
        weekly=[WeeklyCheckOut.model_validate(r) for r in weekly],
    )
