"""
Read-side projections for the dashboard.

Everything here is pure: callers pass in records already read from the
store, and results are plain dataclasses. Nothing is persisted.
"""
from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence

from dbmonitor.monitoring.enums import CheckStatus, DatabaseType

# More than this many warnings on the latest day flags a database.
WARNING_THRESHOLD = 2
# Tablespaces at or below this size are left off the usage chart.
TABLESPACE_MIN_TOTAL_GB = 1
TABLESPACE_CHART_LIMIT = 10


class Health(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class DatabaseHealth:
    database_id: str
    database_name: str
    short_code: str
    type: DatabaseType
    health: Health
    passed_count: int
    failed_count: int
    warning_count: int
    not_checked_count: int
    last_checked: Optional[date]


@dataclass
class TrendPoint:
    date: date
    passed: int
    failed: int
    warnings: int


@dataclass
class TablespaceBar:
    name: str
    used: float
    free: float
    total: float
    used_percent: int


def classify_health(statuses: Iterable[CheckStatus]) -> Health:
    """
    Fold one day's check statuses into a health label.

    critical if anything failed, warning if there are more than
    WARNING_THRESHOLD warnings, healthy otherwise (including no checks).
    """
    counts = Counter(CheckStatus(s) for s in statuses)
    if counts[CheckStatus.FAIL]:
        return Health.CRITICAL
    if counts[CheckStatus.WARNING] > WARNING_THRESHOLD:
        return Health.WARNING
    return Health.HEALTHY


def summarize_database(database: Any, latest_checks: Sequence[Any]) -> DatabaseHealth:
    """
    Health card for one database.

    ``latest_checks`` are the daily records of the database's most recent
    check day; anything with ``status`` and ``check_date`` attributes works.
    """
    counts = Counter(CheckStatus(c.status) for c in latest_checks)
    last_checked = max((c.check_date for c in latest_checks), default=None)
    return DatabaseHealth(
        database_id=database.id,
        database_name=database.name,
        short_code=database.short_code,
        type=database.type,
        health=classify_health(c.status for c in latest_checks),
        passed_count=counts[CheckStatus.PASS],
        failed_count=counts[CheckStatus.FAIL],
        warning_count=counts[CheckStatus.WARNING],
        not_checked_count=counts[CheckStatus.NOT_CHECKED],
        last_checked=last_checked,
    )


def health_totals(cards: Iterable[DatabaseHealth]) -> Dict[str, int]:
    counts = Counter(card.health for card in cards)
    return {h.value: counts[h] for h in Health}


def trend_series(checks: Iterable[Any], *, days: int, end: date) -> List[TrendPoint]:
    """
    Daily pass / fail / warning counts for the ``days`` days ending at ``end``.

    Days without records are present with zero counts; records outside
    the window are ignored. Points are in ascending date order.
    """
    if days < 1:
        return []
    start = end - timedelta(days=days - 1)
    buckets: Dict[date, Counter] = {start + timedelta(days=i): Counter() for i in range(days)}
    for check in checks:
        bucket = buckets.get(check.check_date)
        if bucket is not None:
            bucket[CheckStatus(check.status)] += 1

    return [
        TrendPoint(
            date=day,
            passed=counts[CheckStatus.PASS],
            failed=counts[CheckStatus.FAIL],
            warnings=counts[CheckStatus.WARNING],
        )
        for day, counts in buckets.items()
    ]


def tablespace_usage(entries: Iterable[Any]) -> List[TablespaceBar]:
    bars: List[TablespaceBar] = []
    for entry in entries:
        if entry.total_gb <= TABLESPACE_MIN_TOTAL_GB:
            continue
        bars.append(
            TablespaceBar(
                name=entry.name,
                used=entry.used_gb,
                free=entry.free_gb,
                total=entry.total_gb,
                used_percent=entry.used_percent,
            )
        )
        if len(bars) == TABLESPACE_CHART_LIMIT:
            break
    return bars


@dataclass
class StatusTotals:
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    # every check counts, not_checked included
    total: int = 0

    def add(self, status: CheckStatus) -> None:
        status = CheckStatus(status)
        self.total += 1
        if status == CheckStatus.PASS:
            self.passed += 1
        elif status == CheckStatus.FAIL:
            self.failed += 1
        elif status == CheckStatus.WARNING:
            self.warnings += 1

    @property
    def pass_rate(self) -> float:
        """Percentage of passed checks, one decimal; 0 when nothing was checked."""
        if not self.total:
            return 0.0
        return round(self.passed / self.total * 100, 1)


@dataclass
class DayTotals:
    date: date
    totals: StatusTotals


@dataclass
class MonthTotals:
    month: int
    totals: StatusTotals


@dataclass
class MonthlyReport:
    year: int
    month: int
    totals: StatusTotals = field(default_factory=StatusTotals)
    days: List[DayTotals] = field(default_factory=list)

    @property
    def days_with_data(self) -> int:
        return sum(1 for day in self.days if day.totals.total)


@dataclass
class YearlyReport:
    year: int
    totals: StatusTotals = field(default_factory=StatusTotals)
    months: List[MonthTotals] = field(default_factory=list)


def monthly_report(checks: Iterable[Any], year: int, month: int) -> MonthlyReport:
    """
    Fold daily records into one month's totals, with a zero-filled row per day.

    Records dated outside the month are ignored.
    """
    first = date(year, month, 1)
    length = calendar.monthrange(year, month)[1]
    report = MonthlyReport(
        year=year,
        month=month,
        days=[DayTotals(first + timedelta(days=i), StatusTotals()) for i in range(length)],
    )
    for check in checks:
        day = check.check_date
        if (day.year, day.month) != (year, month):
            continue
        report.days[day.day - 1].totals.add(check.status)
        report.totals.add(check.status)
    return report


def yearly_report(checks: Iterable[Any], year: int) -> YearlyReport:
    """Fold daily records into one year's totals, with a row per month."""
    report = YearlyReport(
        year=year, months=[MonthTotals(m, StatusTotals()) for m in range(1, 13)],
    )
    for check in checks:
        if check.check_date.year != year:
            continue
        report.months[check.check_date.month - 1].totals.add(check.status)
        report.totals.add(check.status)
    return report
