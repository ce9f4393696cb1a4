from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from dbmonitor.auth.models import User
from dbmonitor.db.base import Base
from dbmonitor.monitoring.enums import CheckStatus, DatabaseType, VerificationStatus


# --- reference data ---
class Database(Base):
    __tablename__ = "databases"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)  # e.g. cprdb
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    short_code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True,
    )
    instance_name: Mapped[str] = mapped_column(String(100), nullable=False)
    host_name: Mapped[Optional[str]] = mapped_column(String(200))
    ip_address: Mapped[Optional[str]] = mapped_column(String(50))
    vcpu: Mapped[Optional[int]] = mapped_column(Integer)
    ram: Mapped[Optional[str]] = mapped_column(String(50))
    sga: Mapped[Optional[str]] = mapped_column(String(50))
    software_version: Mapped[Optional[str]] = mapped_column(String(200))
    os_version: Mapped[Optional[str]] = mapped_column(String(200))
    type: Mapped[DatabaseType] = mapped_column(
        SQLEnum(DatabaseType), nullable=False, index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class CheckType(Base):
    __tablename__ = "check_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # DatabaseType values this probe applies to
    applicable_database_types: Mapped[List[str]] = mapped_column(
        JSON, default=list, nullable=False,
    )
    is_daily: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_weekly: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def applies_to(self, db_type: DatabaseType) -> bool:
        return db_type.value in (self.applicable_database_types or [])


# --- check records ---
class VerificationMixin:
    """Admin sign-off columns shared by daily and weekly records."""

    verification_status: Mapped[VerificationStatus] = mapped_column(
        SQLEnum(VerificationStatus),
        default=VerificationStatus.PENDING,
        nullable=False,
        index=True,
    )
    verified_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True,
    )
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    verification_comment: Mapped[Optional[str]] = mapped_column(Text)
    # sha256 of the submitted content, compared on overwrite
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    submitted_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True,
    )

    @declared_attr
    def submitter(cls) -> Mapped[Optional[User]]:
        return relationship("User", foreign_keys=f"{cls.__name__}.submitted_by")

    @declared_attr
    def verifier(cls) -> Mapped[Optional[User]]:
        return relationship("User", foreign_keys=f"{cls.__name__}.verified_by")

    @property
    def database_name(self) -> Optional[str]:
        return self.database.name if self.database is not None else None

    @property
    def submitted_by_name(self) -> Optional[str]:
        return self.submitter.name if self.submitter is not None else None

    @property
    def verified_by_name(self) -> Optional[str]:
        return self.verifier.name if self.verifier is not None else None


class DailyCheck(VerificationMixin, Base):
    __tablename__ = "daily_checks"
    __table_args__ = (
        UniqueConstraint("database_id", "check_type_id", "check_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    database_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("databases.id"), nullable=False, index=True,
    )
    check_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("check_types.id"), nullable=False, index=True,
    )
    check_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[CheckStatus] = mapped_column(
        SQLEnum(CheckStatus), default=CheckStatus.NOT_CHECKED, nullable=False, index=True,
    )
    value: Mapped[Optional[str]] = mapped_column(Text)
    comment: Mapped[Optional[str]] = mapped_column(Text)

    database: Mapped[Database] = relationship("Database")
    check_type: Mapped[CheckType] = relationship("CheckType")

    @property
    def check_type_name(self) -> Optional[str]:
        return self.check_type.name if self.check_type is not None else None


class WeeklyCheck(VerificationMixin, Base):
    __tablename__ = "weekly_checks"
    __table_args__ = (
        UniqueConstraint("database_id", "week_number", "year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    database_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("databases.id"), nullable=False, index=True,
    )
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[CheckStatus] = mapped_column(
        SQLEnum(CheckStatus), default=CheckStatus.NOT_CHECKED, nullable=False,
    )
    comment: Mapped[Optional[str]] = mapped_column(Text)
    production_db_size: Mapped[Optional[str]] = mapped_column(String(50))
    archive_db_size: Mapped[Optional[str]] = mapped_column(String(50))
    invalid_objects: Mapped[Optional[int]] = mapped_column(Integer)
    instance_start_date: Mapped[Optional[str]] = mapped_column(String(100))

    database: Mapped[Database] = relationship("Database")

    tablespaces: Mapped[List["TablespaceUsage"]] = relationship(
        "TablespaceUsage",
        back_populates="weekly_check",
        cascade="all, delete-orphan",
        order_by="TablespaceUsage.id",
    )
    objects_created: Mapped[List["ObjectCreated"]] = relationship(
        "ObjectCreated",
        back_populates="weekly_check",
        cascade="all, delete-orphan",
        order_by="ObjectCreated.id",
    )
    schema_sizes: Mapped[List["SchemaSize"]] = relationship(
        "SchemaSize",
        back_populates="weekly_check",
        cascade="all, delete-orphan",
        order_by="SchemaSize.id",
    )


class TablespaceUsage(Base):
    __tablename__ = "tablespace_usage"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    weekly_check_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("weekly_checks.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    total_gb: Mapped[float] = mapped_column(Float, nullable=False)
    used_gb: Mapped[float] = mapped_column(Float, nullable=False)
    free_gb: Mapped[float] = mapped_column(Float, nullable=False)
    used_percent: Mapped[int] = mapped_column(Integer, nullable=False)

    weekly_check: Mapped[WeeklyCheck] = relationship("WeeklyCheck", back_populates="tablespaces")


class ObjectCreated(Base):
    __tablename__ = "objects_created"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    weekly_check_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("weekly_checks.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    object_date: Mapped[date] = mapped_column(Date, nullable=False)
    user_name: Mapped[str] = mapped_column(String(100), nullable=False)
    object_name: Mapped[str] = mapped_column(String(255), nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text)

    weekly_check: Mapped[WeeklyCheck] = relationship("WeeklyCheck", back_populates="objects_created")


class SchemaSize(Base):
    __tablename__ = "schema_sizes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    weekly_check_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("weekly_checks.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    schema_name: Mapped[str] = mapped_column(String(100), nullable=False)
    size_value: Mapped[str] = mapped_column(String(50), nullable=False)

    weekly_check: Mapped[WeeklyCheck] = relationship("WeeklyCheck", back_populates="schema_sizes")
