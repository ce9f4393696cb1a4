from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dbmonitor.dashboard import aggregator
from dbmonitor.monitoring import services as monitoring
from dbmonitor.monitoring.models import DailyCheck, Database, WeeklyCheck

DEFAULT_TREND_DAYS = 30


async def latest_daily_checks(session: AsyncSession) -> Dict[str, List[DailyCheck]]:
    """Daily records of each database's most recent check day, keyed by database id."""
    latest = (
        select(
            DailyCheck.database_id.label("database_id"),
            func.max(DailyCheck.check_date).label("check_date"),
        )
        .group_by(DailyCheck.database_id)
        .subquery()
    )
    q = select(DailyCheck).join(
        latest,
        and_(
            DailyCheck.database_id == latest.c.database_id,
            DailyCheck.check_date == latest.c.check_date,
        ),
    )
    result = await session.execute(q)
    grouped: Dict[str, List[DailyCheck]] = defaultdict(list)
    for record in result.scalars().all():
        grouped[record.database_id].append(record)
    return grouped


async def health_overview(
    session: AsyncSession, *, database_id: Optional[str] = None
) -> Tuple[Dict[str, int], List[aggregator.DatabaseHealth]]:
    if database_id is not None:
        databases = [await monitoring.get_database(session, database_id)]
    else:
        databases = await monitoring.list_databases(session)
    latest = await latest_daily_checks(session)
    cards = [aggregator.summarize_database(db, latest.get(db.id, [])) for db in databases]
    return aggregator.health_totals(cards), cards


async def trend(
    session: AsyncSession,
    *,
    days: int = DEFAULT_TREND_DAYS,
    end: Optional[date] = None,
    database_id: Optional[str] = None,
) -> List[aggregator.TrendPoint]:
    end = end or monitoring.today()
    start = end - timedelta(days=days - 1)
    q = select(DailyCheck).where(DailyCheck.check_date.between(start, end))
    if database_id is not None:
        q = q.where(DailyCheck.database_id == database_id)
    result = await session.execute(q)
    return aggregator.trend_series(result.scalars().all(), days=days, end=end)


async def tablespaces(
    session: AsyncSession, database_id: str
) -> Tuple[Optional[WeeklyCheck], List[aggregator.TablespaceBar]]:
    """Usage bars from the database's most recent weekly record."""
    await monitoring.get_database(session, database_id)
    record = await monitoring.latest_weekly_check(session, database_id)
    if record is None:
        return None, []
    return record, aggregator.tablespace_usage(record.tablespaces)


async def _daily_checks_between(
    session: AsyncSession, start: date, end: date, database_id: Optional[str]
) -> Tuple[List[Database], Dict[str, List[DailyCheck]]]:
    if database_id is not None:
        databases = [await monitoring.get_database(session, database_id)]
    else:
        databases = await monitoring.list_databases(session)
    q = select(DailyCheck).where(
        DailyCheck.check_date.between(start, end),
        DailyCheck.database_id.in_([db.id for db in databases]),
    )
    result = await session.execute(q)
    grouped: Dict[str, List[DailyCheck]] = defaultdict(list)
    for record in result.scalars().all():
        grouped[record.database_id].append(record)
    return databases, grouped


async def monthly_reports(
    session: AsyncSession, *, year: int, month: int, database_id: Optional[str] = None
) -> Tuple[aggregator.MonthlyReport, List[Tuple[Database, aggregator.MonthlyReport]]]:
    """Overall and per-database report for one calendar month."""
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])
    databases, grouped = await _daily_checks_between(session, start, end, database_id)
    everything = [c for checks in grouped.values() for c in checks]
    per_database = [
        (db, aggregator.monthly_report(grouped.get(db.id, []), year, month))
        for db in databases
    ]
    return aggregator.monthly_report(everything, year, month), per_database


async def yearly_reports(
    session: AsyncSession, *, year: int, database_id: Optional[str] = None
) -> Tuple[aggregator.YearlyReport, List[Tuple[Database, aggregator.YearlyReport]]]:
    """Overall and per-database report for one calendar year."""
    databases, grouped = await _daily_checks_between(
        session, date(year, 1, 1), date(year, 12, 31), database_id,
    )
    everything = [c for checks in grouped.values() for c in checks]
    per_database = [
        (db, aggregator.yearly_report(grouped.get(db.id, []), year)) for db in databases
    ]
    return aggregator.yearly_report(everything, year), per_database
