from __future__ import annotations

import math
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dbmonitor.monitoring.enums import CheckStatus, DatabaseType, VerificationStatus

# Allowed distance between a reported used_percent and the computed one.
USED_PERCENT_TOLERANCE = 1


def tablespace_used_percent(total_gb: float, used_gb: float) -> int:
    """Round half up, as the dashboards do."""
    if total_gb <= 0:
        return 0
    return int(math.floor(used_gb / total_gb * 100 + 0.5))


# -----------------------
# Reference data
# -----------------------
class DatabaseCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9_\-]+$")
    name: str = Field(..., max_length=200)
    short_code: str = Field(..., min_length=1, max_length=50)
    instance_name: str = Field(..., max_length=100)
    host_name: Optional[str] = Field(None, max_length=200)
    ip_address: Optional[str] = Field(None, max_length=50)
    vcpu: Optional[int] = Field(None, ge=0)
    ram: Optional[str] = None
    sga: Optional[str] = None
    software_version: Optional[str] = None
    os_version: Optional[str] = None
    type: DatabaseType


class DatabaseOut(BaseModel):
    id: str
    name: str
    short_code: str
    instance_name: str
    host_name: Optional[str]
    ip_address: Optional[str]
    vcpu: Optional[int]
    ram: Optional[str]
    sga: Optional[str]
    software_version: Optional[str]
    os_version: Optional[str]
    type: DatabaseType
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CheckTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    applicable_database_types: List[DatabaseType] = Field(..., min_length=1)
    is_daily: bool = True
    is_weekly: bool = False
    display_order: int = 0

    @model_validator(mode="after")
    def _needs_a_schedule(self) -> "CheckTypeCreate":
        if not (self.is_daily or self.is_weekly):
            raise ValueError("a check type must be daily, weekly or both")
        return self


class CheckTypeOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    applicable_database_types: List[DatabaseType]
    is_daily: bool
    is_weekly: bool
    display_order: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


# -----------------------
# Daily checks
# -----------------------
class DailyCheckIn(BaseModel):
    database_id: str
    check_type_id: int
    check_date: date
    status: CheckStatus
    value: Optional[str] = None
    comment: Optional[str] = None


class VerificationOut(BaseModel):
    verification_status: VerificationStatus
    verified_by: Optional[int]
    verified_by_name: Optional[str] = None
    verified_at: Optional[datetime]
    verification_comment: Optional[str]


class DailyCheckOut(VerificationOut):
    id: int
    database_id: str
    database_name: Optional[str] = None
    check_type_id: int
    check_type_name: Optional[str] = None
    check_date: date
    status: CheckStatus
    value: Optional[str]
    comment: Optional[str]
    submitted_by: Optional[int]
    submitted_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------
# Weekly checks
# -----------------------
class TablespaceIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    total_gb: float = Field(..., ge=0)
    used_gb: float = Field(..., ge=0)
    free_gb: float = Field(..., ge=0)
    used_percent: Optional[int] = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def _check_usage(self) -> "TablespaceIn":
        if self.used_gb > self.total_gb:
            raise ValueError(f"tablespace {self.name}: used_gb exceeds total_gb")
        expected = tablespace_used_percent(self.total_gb, self.used_gb)
        if self.used_percent is None:
            self.used_percent = expected
        elif abs(self.used_percent - expected) > USED_PERCENT_TOLERANCE:
            raise ValueError(
                f"tablespace {self.name}: used_percent {self.used_percent} "
                f"does not match used/total ({expected})"
            )
        return self


class TablespaceOut(BaseModel):
    name: str
    total_gb: float
    used_gb: float
    free_gb: float
    used_percent: int

    model_config = ConfigDict(from_attributes=True)


class ObjectCreatedIn(BaseModel):
    object_date: date
    user_name: str = Field(..., max_length=100)
    object_name: str = Field(..., max_length=255)
    comment: Optional[str] = None


class ObjectCreatedOut(ObjectCreatedIn):
    model_config = ConfigDict(from_attributes=True)


class WeeklyCheckIn(BaseModel):
    database_id: str
    week_number: int = Field(..., ge=1, le=53)
    year: int = Field(..., ge=2000, le=9999)
    status: CheckStatus = CheckStatus.NOT_CHECKED
    comment: Optional[str] = None
    production_db_size: Optional[str] = Field(None, max_length=50)
    archive_db_size: Optional[str] = Field(None, max_length=50)
    invalid_objects: Optional[int] = Field(None, ge=0)
    instance_start_date: Optional[str] = Field(None, max_length=100)
    tablespaces: List[TablespaceIn] = Field(default_factory=list)
    objects_created: List[ObjectCreatedIn] = Field(default_factory=list)
    schema_sizes: Dict[str, str] = Field(default_factory=dict)


class WeeklyCheckOut(VerificationOut):
    id: int
    database_id: str
    database_name: Optional[str] = None
    week_number: int
    year: int
    week_start_date: date
    status: CheckStatus
    comment: Optional[str]
    production_db_size: Optional[str]
    archive_db_size: Optional[str]
    invalid_objects: Optional[int]
    instance_start_date: Optional[str]
    tablespaces: List[TablespaceOut]
    objects_created: List[ObjectCreatedOut]
    schema_sizes: Dict[str, str]
    submitted_by: Optional[int]
    submitted_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="before")
    @classmethod
    def _flatten_schema_sizes(cls, data):
        # ORM rows carry schema sizes as child objects
        sizes = getattr(data, "schema_sizes", None)
        if sizes is not None and not isinstance(data, dict) and isinstance(sizes, list):
            fields = {name: getattr(data, name, None) for name in cls.model_fields}
            fields["schema_sizes"] = {s.schema_name: s.size_value for s in sizes}
            return fields
        return data


# -----------------------
# Verification
# -----------------------
class VerificationIn(BaseModel):
    comment: Optional[str] = None


class PendingVerificationsOut(BaseModel):
    daily: List[DailyCheckOut]
    weekly: List[WeeklyCheckOut]
