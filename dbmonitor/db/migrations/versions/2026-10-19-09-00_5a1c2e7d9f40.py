"""initial schema.

Revision ID: 5a1c2e7d9f40
Revises:
Create Date: 2026-10-19 09:00:12.418331

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "5a1c2e7d9f40"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLE = postgresql.ENUM("ADMIN", "USER", name="userrole", create_type=False)
APPROVAL_STATUS = postgresql.ENUM("PENDING", "APPROVED", "REJECTED", name="approvalstatus", create_type=False)
DATABASE_TYPE = postgresql.ENUM(
    "PRIMARY", "STANDBY", "ARCHIVE", "GIS", "OEM", "PILOT", "AUDIT_VAULT", "FIREWALL",
    name="databasetype",
    create_type=False,
)
CHECK_STATUS = postgresql.ENUM("PASS", "FAIL", "WARNING", "NOT_CHECKED", name="checkstatus", create_type=False)
VERIFICATION_STATUS = postgresql.ENUM("PENDING", "VERIFIED", "REJECTED", name="verificationstatus", create_type=False)
ENUMS = (USER_ROLE, APPROVAL_STATUS, DATABASE_TYPE, CHECK_STATUS, VERIFICATION_STATUS)


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _verification(table: str):
    return [
        sa.Column("verification_status", VERIFICATION_STATUS, nullable=False),
        sa.Column("verified_by", sa.Integer(), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_comment", sa.Text(), nullable=True),
        sa.Column("content_hash", sa.String(length=64), nullable=False),
        sa.Column("submitted_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["verified_by"], ["users.id"], name=op.f(f"fk_{table}_verified_by_users")),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"], name=op.f(f"fk_{table}_submitted_by_users")),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("approval_status", APPROVAL_STATUS, nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_approval_status"), "users", ["approval_status"], unique=False)

    op.create_table(
        "databases",
        sa.Column("id", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("short_code", sa.String(length=50), nullable=False),
        sa.Column("instance_name", sa.String(length=100), nullable=False),
        sa.Column("host_name", sa.String(length=200), nullable=True),
        sa.Column("ip_address", sa.String(length=50), nullable=True),
        sa.Column("vcpu", sa.Integer(), nullable=True),
        sa.Column("ram", sa.String(length=50), nullable=True),
        sa.Column("sga", sa.String(length=50), nullable=True),
        sa.Column("software_version", sa.String(length=200), nullable=True),
        sa.Column("os_version", sa.String(length=200), nullable=True),
        sa.Column("type", DATABASE_TYPE, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_databases")),
    )
    op.create_index(op.f("ix_databases_short_code"), "databases", ["short_code"], unique=True)
    op.create_index(op.f("ix_databases_type"), "databases", ["type"], unique=False)

    op.create_table(
        "check_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("applicable_database_types", sa.JSON(), nullable=False),
        sa.Column("is_daily", sa.Boolean(), nullable=False),
        sa.Column("is_weekly", sa.Boolean(), nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_check_types")),
        sa.UniqueConstraint("name", name=op.f("uq_check_types_name")),
    )

    op.create_table(
        "daily_checks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("database_id", sa.String(length=50), nullable=False),
        sa.Column("check_type_id", sa.Integer(), nullable=False),
        sa.Column("check_date", sa.Date(), nullable=False),
        sa.Column("status", CHECK_STATUS, nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        *_verification("daily_checks"),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["database_id"], ["databases.id"], name=op.f("fk_daily_checks_database_id_databases"),
        ),
        sa.ForeignKeyConstraint(
            ["check_type_id"], ["check_types.id"], name=op.f("fk_daily_checks_check_type_id_check_types"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_daily_checks")),
        sa.UniqueConstraint(
            "database_id", "check_type_id", "check_date", name=op.f("uq_daily_checks_database_id"),
        ),
    )
    op.create_index(op.f("ix_daily_checks_database_id"), "daily_checks", ["database_id"], unique=False)
    op.create_index(op.f("ix_daily_checks_check_type_id"), "daily_checks", ["check_type_id"], unique=False)
    op.create_index(op.f("ix_daily_checks_check_date"), "daily_checks", ["check_date"], unique=False)
    op.create_index(op.f("ix_daily_checks_status"), "daily_checks", ["status"], unique=False)
    op.create_index(
        op.f("ix_daily_checks_verification_status"), "daily_checks", ["verification_status"], unique=False,
    )

    op.create_table(
        "weekly_checks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("database_id", sa.String(length=50), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("status", CHECK_STATUS, nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("production_db_size", sa.String(length=50), nullable=True),
        sa.Column("archive_db_size", sa.String(length=50), nullable=True),
        sa.Column("invalid_objects", sa.Integer(), nullable=True),
        sa.Column("instance_start_date", sa.String(length=100), nullable=True),
        *_verification("weekly_checks"),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["database_id"], ["databases.id"], name=op.f("fk_weekly_checks_database_id_databases"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_weekly_checks")),
        sa.UniqueConstraint(
            "database_id", "week_number", "year", name=op.f("uq_weekly_checks_database_id"),
        ),
    )
    op.create_index(op.f("ix_weekly_checks_database_id"), "weekly_checks", ["database_id"], unique=False)
    op.create_index(
        op.f("ix_weekly_checks_verification_status"), "weekly_checks", ["verification_status"], unique=False,
    )

    op.create_table(
        "tablespace_usage",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("weekly_check_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("total_gb", sa.Float(), nullable=False),
        sa.Column("used_gb", sa.Float(), nullable=False),
        sa.Column("free_gb", sa.Float(), nullable=False),
        sa.Column("used_percent", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["weekly_check_id"], ["weekly_checks.id"],
            name=op.f("fk_tablespace_usage_weekly_check_id_weekly_checks"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_tablespace_usage")),
    )
    op.create_index(
        op.f("ix_tablespace_usage_weekly_check_id"), "tablespace_usage", ["weekly_check_id"], unique=False,
    )

    op.create_table(
        "objects_created",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("weekly_check_id", sa.Integer(), nullable=False),
        sa.Column("object_date", sa.Date(), nullable=False),
        sa.Column("user_name", sa.String(length=100), nullable=False),
        sa.Column("object_name", sa.String(length=255), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["weekly_check_id"], ["weekly_checks.id"],
            name=op.f("fk_objects_created_weekly_check_id_weekly_checks"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_objects_created")),
    )
    op.create_index(
        op.f("ix_objects_created_weekly_check_id"), "objects_created", ["weekly_check_id"], unique=False,
    )

    op.create_table(
        "schema_sizes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("weekly_check_id", sa.Integer(), nullable=False),
        sa.Column("schema_name", sa.String(length=100), nullable=False),
        sa.Column("size_value", sa.String(length=50), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["weekly_check_id"], ["weekly_checks.id"],
            name=op.f("fk_schema_sizes_weekly_check_id_weekly_checks"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_schema_sizes")),
    )
    op.create_index(
        op.f("ix_schema_sizes_weekly_check_id"), "schema_sizes", ["weekly_check_id"], unique=False,
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="success"),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name=op.f("fk_audit_log_user_id_users")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_audit_log")),
    )
    op.create_index(op.f("ix_audit_log_user_id"), "audit_log", ["user_id"], unique=False)
    op.create_index(op.f("ix_audit_log_action"), "audit_log", ["action"], unique=False)
    op.create_index(op.f("ix_audit_log_status"), "audit_log", ["status"], unique=False)


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("schema_sizes")
    op.drop_table("objects_created")
    op.drop_table("tablespace_usage")
    op.drop_table("weekly_checks")
    op.drop_table("daily_checks")
    op.drop_table("check_types")
    op.drop_table("databases")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
