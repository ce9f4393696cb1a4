from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.auth.permissions import require_user
from dbmonitor.auth.schemas import UserContext
from dbmonitor.dashboard import services
from dbmonitor.dashboard.schemas import (
    DatabaseHealthOut,
    DatabaseMonthlyReportOut,
    DatabaseYearlyReportOut,
    HealthOverviewOut,
    MonthlyReportOut,
    MonthlyReportsOut,
    TablespaceBarOut,
    TablespaceChartOut,
    TrendPointOut,
    YearlyReportOut,
    YearlyReportsOut,
)
from dbmonitor.db.dependencies import get_db_session
from dbmonitor.monitoring import services as monitoring
from dbmonitor.utils import translate_service_errors

router = APIRouter()


@router.get("/health", response_model=HealthOverviewOut)
@translate_service_errors
async def database_health(
    database_id: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Health label per active database, from its latest day of daily checks."""
    totals, cards = await services.health_overview(session, database_id=database_id)
    return HealthOverviewOut(
        totals=totals,
        databases=[DatabaseHealthOut.model_validate(card) for card in cards],
    )


@router.get("/trend", response_model=List[TrendPointOut])
@translate_service_errors
async def check_trend(
    days: int = Query(services.DEFAULT_TREND_DAYS, ge=1, le=366),
    end: Optional[date] = Query(None),
    database_id: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    points = await services.trend(session, days=days, end=end, database_id=database_id)
    return [TrendPointOut.model_validate(p) for p in points]


@router.get("/tablespaces", response_model=TablespaceChartOut)
@translate_service_errors
async def tablespace_chart(
    database_id: str = Query("cprdb"),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    record, bars = await services.tablespaces(session, database_id)
    return TablespaceChartOut(
        database_id=database_id,
        week_number=record.week_number if record else None,
        year=record.year if record else None,
        tablespaces=[TablespaceBarOut.model_validate(b) for b in bars],
    )


@router.get("/reports/monthly", response_model=MonthlyReportsOut)
@translate_service_errors
async def monthly_report(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    database_id: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Printable month summary: overall totals plus one report per database."""
    today = monitoring.today()
    overall, per_database = await services.monthly_reports(
        session,
        year=year or today.year,
        month=month or today.month,
        database_id=database_id,
    )
    return MonthlyReportsOut(
        overall=MonthlyReportOut.model_validate(overall),
        databases=[
            DatabaseMonthlyReportOut(
                database_id=db.id,
                database_name=db.name,
                **MonthlyReportOut.model_validate(report).model_dump(),
            )
            for db, report in per_database
        ],
    )


@router.get("/reports/yearly", response_model=YearlyReportsOut)
@translate_service_errors
async def yearly_report(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    database_id: Optional[str] = Query(None),
    current_user: UserContext = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    overall, per_database = await services.yearly_reports(
        session, year=year or monitoring.today().year, database_id=database_id,
    )
    return YearlyReportsOut(
        overall=YearlyReportOut.model_validate(overall),
        databases=[
            DatabaseYearlyReportOut(
                database_id=db.id,
                database_name=db.name,
                **YearlyReportOut.model_validate(report).model_dump(),
            )
            for db, report in per_database
        ],
    )
