from __future__ import annotations

import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from dbmonitor.dashboard.aggregator import Health
from dbmonitor.monitoring.enums import DatabaseType


class DatabaseHealthOut(BaseModel):
    database_id: str
    database_name: str
    short_code: str
    type: DatabaseType
    health: Health
    passed_count: int
    failed_count: int
    warning_count: int
    not_checked_count: int
    last_checked: Optional[datetime.date]

    model_config = ConfigDict(from_attributes=True)


class HealthOverviewOut(BaseModel):
    totals: Dict[str, int]
    databases: List[DatabaseHealthOut]


class TrendPointOut(BaseModel):
    date: datetime.date
    passed: int
    failed: int
    warnings: int

    model_config = ConfigDict(from_attributes=True)


class TablespaceBarOut(BaseModel):
    name: str
    used: float
    free: float
    total: float
    used_percent: int

    model_config = ConfigDict(from_attributes=True)


class TablespaceChartOut(BaseModel):
    database_id: str
    week_number: Optional[int] = None
    year: Optional[int] = None
    tablespaces: List[TablespaceBarOut]


class StatusTotalsOut(BaseModel):
    passed: int
    failed: int
    warnings: int
    total: int
    pass_rate: float

    model_config = ConfigDict(from_attributes=True)


class DayTotalsOut(BaseModel):
    date: datetime.date
    totals: StatusTotalsOut

    model_config = ConfigDict(from_attributes=True)


class MonthTotalsOut(BaseModel):
    month: int
    totals: StatusTotalsOut

    model_config = ConfigDict(from_attributes=True)


class MonthlyReportOut(BaseModel):
    year: int
    month: int
    totals: StatusTotalsOut
    days_with_data: int
    days: List[DayTotalsOut]

    model_config = ConfigDict(from_attributes=True)


class DatabaseMonthlyReportOut(MonthlyReportOut):
    database_id: str
    database_name: str


class MonthlyReportsOut(BaseModel):
    overall: MonthlyReportOut
    databases: List[DatabaseMonthlyReportOut]


class YearlyReportOut(BaseModel):
    year: int
    totals: StatusTotalsOut
    months: List[MonthTotalsOut]

    model_config = ConfigDict(from_attributes=True)


class DatabaseYearlyReportOut(YearlyReportOut):
    database_id: str
    database_name: str


class YearlyReportsOut(BaseModel):
    overall: YearlyReportOut
    databases: List[DatabaseYearlyReportOut]
