from __future__ import annotations

import hashlib
import json
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from loguru import logger
from sqlalchemy import case, func, literal, null, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from dbmonitor.audit.services import record_event
from dbmonitor.auth.schemas import UserContext
from dbmonitor.monitoring.catalog import DEFAULT_DATABASES, check_type_definitions
from dbmonitor.monitoring.enums import CheckStatus, VerificationStatus
from dbmonitor.monitoring.models import (
    CheckType,
    DailyCheck,
    Database,
    ObjectCreated,
    SchemaSize,
    TablespaceUsage,
    WeeklyCheck,
)
from dbmonitor.monitoring.schemas import (
    CheckTypeCreate,
    DatabaseCreate,
    WeeklyCheckIn,
)
from dbmonitor.utils import (
    Conflict,
    ForeignKeyViolation,
    InternalError,
    NotFound,
    ValidationError,
    _get_or_404,
)


def today() -> date:
    return date.today()


# ---- Databases ----
async def list_databases(
    session: AsyncSession, *, include_inactive: bool = False
) -> List[Database]:
    q = select(Database)
    if not include_inactive:
        q = q.where(Database.is_active.is_(True))
    q = q.order_by(Database.name, Database.id)
    result = await session.execute(q)
    return list(result.scalars().all())


async def get_database(session: AsyncSession, database_id: str) -> Database:
    return await _get_or_404(session, Database, database_id)


async def create_database(
    session: AsyncSession, payload: DatabaseCreate, *, actor_id: Optional[int] = None
) -> Database:
    if await session.get(Database, payload.id) is not None:
        raise Conflict(f"Database {payload.id} already exists")
    taken = await session.execute(
        select(Database.id).where(Database.short_code == payload.short_code)
    )
    if taken.first():
        raise Conflict(f"Short code {payload.short_code} is already in use")

    database = Database(**payload.model_dump(), is_active=True)
    session.add(database)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict("Database id or short code already exists") from exc
    await record_event(
        session, action="database.create", user_id=actor_id,
        entity="database", entity_id=database.id,
    )
    await session.refresh(database)
    return database


async def deactivate_database(
    session: AsyncSession, database_id: str, *, actor_id: Optional[int] = None
) -> Database:
    """Soft delete: historical check records keep pointing at the row."""
    database = await get_database(session, database_id)
    if database.is_active:
        database.is_active = False
        session.add(database)
        await session.flush()
        await record_event(
            session, action="database.deactivate", user_id=actor_id,
            entity="database", entity_id=database.id,
        )
    await session.refresh(database)
    return database


# ---- Check types ----
async def list_check_types(
    session: AsyncSession,
    *,
    database_id: Optional[str] = None,
    daily: Optional[bool] = None,
    weekly: Optional[bool] = None,
) -> List[CheckType]:
    q = select(CheckType).where(CheckType.is_active.is_(True))
    if daily is not None:
        q = q.where(CheckType.is_daily.is_(daily))
    if weekly is not None:
        q = q.where(CheckType.is_weekly.is_(weekly))
    q = q.order_by(CheckType.display_order, CheckType.name)
    result = await session.execute(q)
    check_types = list(result.scalars().all())

    if database_id is not None:
        database = await get_database(session, database_id)
        check_types = [ct for ct in check_types if ct.applies_to(database.type)]
    return check_types


async def create_check_type(
    session: AsyncSession, payload: CheckTypeCreate, *, actor_id: Optional[int] = None
) -> CheckType:
    existing = await session.execute(select(CheckType.id).where(CheckType.name == payload.name))
    if existing.first():
        raise Conflict(f"Check type {payload.name!r} already exists")

    check_type = CheckType(
        name=payload.name,
        description=payload.description,
        applicable_database_types=[t.value for t in payload.applicable_database_types],
        is_daily=payload.is_daily,
        is_weekly=payload.is_weekly,
        display_order=payload.display_order,
        is_active=True,
    )
    session.add(check_type)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise Conflict(f"Check type {payload.name!r} already exists") from exc
    await record_event(
        session, action="check_type.create", user_id=actor_id,
        entity="check_type", entity_id=check_type.id,
    )
    await session.refresh(check_type)
    return check_type


async def deactivate_check_type(
    session: AsyncSession, check_type_id: int, *, actor_id: Optional[int] = None
) -> CheckType:
    check_type = await _get_or_404(session, CheckType, check_type_id)
    if check_type.is_active:
        check_type.is_active = False
        session.add(check_type)
        await session.flush()
        await record_event(
            session, action="check_type.deactivate", user_id=actor_id,
            entity="check_type", entity_id=check_type.id,
        )
    await session.refresh(check_type)
    return check_type


async def seed_reference_data(session: AsyncSession) -> int:
    """
    Insert catalog check types and default databases that are not there yet.

    Existing rows (matched by name / id) are left alone, so admin edits
    survive restarts. Returns the number of inserted rows.
    """
    inserted = 0
    known_names = set((await session.execute(select(CheckType.name))).scalars().all())
    for definition in check_type_definitions():
        if definition.name in known_names:
            continue
        session.add(
            CheckType(
                name=definition.name,
                description=definition.description,
                applicable_database_types=[t.value for t in definition.applicable_database_types],
                is_daily=definition.is_daily,
                is_weekly=definition.is_weekly,
                display_order=definition.display_order,
                is_active=True,
            )
        )
        inserted += 1

    known_ids = set((await session.execute(select(Database.id))).scalars().all())
    for row in DEFAULT_DATABASES:
        if row["id"] in known_ids:
            continue
        session.add(Database(**row, is_active=True))
        inserted += 1

    await session.flush()
    if inserted:
        logger.info("Seeded {} reference rows", inserted)
    return inserted


# ---- Check records: helpers ----
def content_fingerprint(content: Dict[str, Any]) -> str:
    """Stable hash of submitted content, independent of key order."""
    blob = json.dumps(content, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise InternalError(f"Upsert is not supported on {dialect}")


async def _upsert(
    session: AsyncSession,
    model,
    values: Dict[str, Any],
    *,
    key_columns: Sequence[str],
    update_columns: Iterable[str],
) -> int:
    """
    Insert ``values`` or overwrite the row with the same key in one statement.

    Verification columns go back to pending only when ``content_hash``
    differs from the stored one, so resubmitting identical content keeps
    an existing sign-off. Returns the row id.
    """
    table = model.__table__
    stmt = _insert_for(session)(table).values(**values)
    changed = table.c.content_hash.is_distinct_from(stmt.excluded.content_hash)
    pending = literal(VerificationStatus.PENDING, table.c.verification_status.type)

    set_: Dict[str, Any] = {name: stmt.excluded[name] for name in update_columns}
    set_.update(
        content_hash=stmt.excluded.content_hash,
        verification_status=case((changed, pending), else_=table.c.verification_status),
        verified_by=case((changed, null()), else_=table.c.verified_by),
        verified_at=case((changed, null()), else_=table.c.verified_at),
        verification_comment=case((changed, null()), else_=table.c.verification_comment),
        updated_at=func.now(),
    )
    stmt = stmt.on_conflict_do_update(index_elements=list(key_columns), set_=set_)
    result = await session.execute(stmt.returning(table.c.id))
    return result.scalar_one()


async def _require_active_database(session: AsyncSession, database_id: str) -> Database:
    database = await session.get(Database, database_id)
    if database is None or not database.is_active:
        raise ForeignKeyViolation(f"Database {database_id} does not exist")
    return database


async def _require_active_check_type(session: AsyncSession, check_type_id: int) -> CheckType:
    check_type = await session.get(CheckType, check_type_id)
    if check_type is None or not check_type.is_active:
        raise ForeignKeyViolation(f"Check type {check_type_id} does not exist")
    return check_type


def _daily_options():
    return (
        joinedload(DailyCheck.database),
        joinedload(DailyCheck.check_type),
        joinedload(DailyCheck.submitter),
        joinedload(DailyCheck.verifier),
    )


def _weekly_options():
    return (
        joinedload(WeeklyCheck.database),
        joinedload(WeeklyCheck.submitter),
        joinedload(WeeklyCheck.verifier),
        selectinload(WeeklyCheck.tablespaces),
        selectinload(WeeklyCheck.objects_created),
        selectinload(WeeklyCheck.schema_sizes),
    )


# ---- Daily checks ----
async def get_daily_check(session: AsyncSession, check_id: int) -> DailyCheck:
    q = (
        select(DailyCheck)
        .options(*_daily_options())
        .where(DailyCheck.id == check_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(q)
    record = result.scalars().first()
    if record is None:
        raise NotFound(f"Daily check {check_id} not found")
    return record


async def upsert_daily_check(
    session: AsyncSession,
    *,
    database_id: str,
    check_type_id: int,
    check_date: date,
    status: CheckStatus,
    value: Optional[str],
    comment: Optional[str],
    submitter: UserContext,
) -> DailyCheck:
    """Create or overwrite the record for (database, check type, date)."""
    database = await _require_active_database(session, database_id)
    check_type = await _require_active_check_type(session, check_type_id)
    if not check_type.is_daily:
        raise ValidationError(f"{check_type.name} is not a daily check")
    if not check_type.applies_to(database.type):
        raise ValidationError(
            f"{check_type.name} does not apply to {database.type.value} databases"
        )

    current = today()
    if check_date > current:
        raise ValidationError("Checks cannot be recorded for a future date")
    if check_date != current and not submitter.is_admin:
        raise ValidationError("Daily checks can only be recorded for today")

    content = {"status": status.value, "value": value, "comment": comment}
    record_id = await _upsert(
        session,
        DailyCheck,
        {
            "database_id": database_id,
            "check_type_id": check_type_id,
            "check_date": check_date,
            **content,
            "status": status,
            "submitted_by": submitter.id,
            "content_hash": content_fingerprint(content),
            "verification_status": VerificationStatus.PENDING,
        },
        key_columns=("database_id", "check_type_id", "check_date"),
        update_columns=("status", "value", "comment", "submitted_by"),
    )
    await record_event(
        session,
        action="daily_check.submit",
        user_id=submitter.id,
        entity="daily_check",
        entity_id=record_id,
        details={"database_id": database_id, "check_type_id": check_type_id,
                 "check_date": check_date.isoformat(), "status": status.value},
    )
    return await get_daily_check(session, record_id)


async def query_daily(
    session: AsyncSession,
    *,
    database_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    verification_status: Optional[VerificationStatus] = None,
) -> List[DailyCheck]:
    """Newest day first, then database name, then the check type's display order."""
    q = (
        select(DailyCheck)
        .join(Database, DailyCheck.database_id == Database.id)
        .join(CheckType, DailyCheck.check_type_id == CheckType.id)
        .options(*_daily_options())
    )
    if database_id is not None:
        q = q.where(DailyCheck.database_id == database_id)
    if start_date is not None:
        q = q.where(DailyCheck.check_date >= start_date)
    if end_date is not None:
        q = q.where(DailyCheck.check_date <= end_date)
    if verification_status is not None:
        q = q.where(DailyCheck.verification_status == verification_status)
    q = q.order_by(
        DailyCheck.check_date.desc(),
        Database.name,
        CheckType.display_order,
        DailyCheck.id,
    )
    result = await session.execute(q)
    return list(result.unique().scalars().all())


# ---- Weekly checks ----
async def get_weekly_check(session: AsyncSession, check_id: int) -> WeeklyCheck:
    q = (
        select(WeeklyCheck)
        .options(*_weekly_options())
        .where(WeeklyCheck.id == check_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(q)
    record = result.unique().scalars().first()
    if record is None:
        raise NotFound(f"Weekly check {check_id} not found")
    return record


def _week_start(year: int, week_number: int) -> date:
    try:
        return date.fromisocalendar(year, week_number, 1)
    except ValueError as exc:
        raise ValidationError(f"{year} has no ISO week {week_number}") from exc


async def upsert_weekly_check(
    session: AsyncSession,
    payload: WeeklyCheckIn,
    *,
    submitter: UserContext,
) -> WeeklyCheck:
    """
    Create or overwrite the record for (database, week, year).

    Child rows (tablespaces, created objects, schema sizes) are replaced
    wholesale within the same transaction.
    """
    await _require_active_database(session, payload.database_id)
    week_start = _week_start(payload.year, payload.week_number)
    if week_start > today():
        raise ValidationError("Checks cannot be recorded for a future week")

    content = payload.model_dump(mode="json", exclude={"database_id", "week_number", "year"})
    record_id = await _upsert(
        session,
        WeeklyCheck,
        {
            "database_id": payload.database_id,
            "week_number": payload.week_number,
            "year": payload.year,
            "week_start_date": week_start,
            "status": payload.status,
            "comment": payload.comment,
            "production_db_size": payload.production_db_size,
            "archive_db_size": payload.archive_db_size,
            "invalid_objects": payload.invalid_objects,
            "instance_start_date": payload.instance_start_date,
            "submitted_by": submitter.id,
            "content_hash": content_fingerprint(content),
            "verification_status": VerificationStatus.PENDING,
        },
        key_columns=("database_id", "week_number", "year"),
        update_columns=(
            "week_start_date",
            "status",
            "comment",
            "production_db_size",
            "archive_db_size",
            "invalid_objects",
            "instance_start_date",
            "submitted_by",
        ),
    )

    record = await get_weekly_check(session, record_id)
    record.tablespaces = [
        TablespaceUsage(
            name=ts.name,
            total_gb=ts.total_gb,
            used_gb=ts.used_gb,
            free_gb=ts.free_gb,
            used_percent=ts.used_percent,
        )
        for ts in payload.tablespaces
    ]
    record.objects_created = [
        ObjectCreated(
            object_date=obj.object_date,
            user_name=obj.user_name,
            object_name=obj.object_name,
            comment=obj.comment,
        )
        for obj in payload.objects_created
    ]
    record.schema_sizes = [
        SchemaSize(schema_name=name, size_value=size)
        for name, size in payload.schema_sizes.items()
    ]
    session.add(record)
    await session.flush()

    await record_event(
        session,
        action="weekly_check.submit",
        user_id=submitter.id,
        entity="weekly_check",
        entity_id=record_id,
        details={"database_id": payload.database_id, "week_number": payload.week_number,
                 "year": payload.year},
    )
    return await get_weekly_check(session, record_id)


async def query_weekly(
    session: AsyncSession,
    *,
    database_id: Optional[str] = None,
    year: Optional[int] = None,
    week_number: Optional[int] = None,
    verification_status: Optional[VerificationStatus] = None,
) -> List[WeeklyCheck]:
    """Newest year and week first, then database name."""
    q = (
        select(WeeklyCheck)
        .join(Database, WeeklyCheck.database_id == Database.id)
        .options(*_weekly_options())
    )
    if database_id is not None:
        q = q.where(WeeklyCheck.database_id == database_id)
    if year is not None:
        q = q.where(WeeklyCheck.year == year)
    if week_number is not None:
        q = q.where(WeeklyCheck.week_number == week_number)
    if verification_status is not None:
        q = q.where(WeeklyCheck.verification_status == verification_status)
    q = q.order_by(
        WeeklyCheck.year.desc(),
        WeeklyCheck.week_number.desc(),
        Database.name,
        WeeklyCheck.id,
    )
    result = await session.execute(q)
    return list(result.unique().scalars().all())


async def latest_weekly_check(
    session: AsyncSession, database_id: str
) -> Optional[WeeklyCheck]:
    records = await query_weekly(session, database_id=database_id)
    return records[0] if records else None
