"""
Static check templates per database category.

Every database type belongs to exactly one category, and each category
carries an ordered list of daily and weekly check names. The table is
validated when the module is imported; a broken table stops the app
from starting instead of producing half-configured databases.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from dbmonitor.monitoring.enums import CheckCategory, DatabaseType


@dataclass(frozen=True)
class CategoryTemplate:
    description: str
    database_types: Tuple[DatabaseType, ...]
    daily_checks: Tuple[str, ...]
    weekly_checks: Tuple[str, ...]


@dataclass(frozen=True)
class CheckTypeDefinition:
    name: str
    description: str
    applicable_database_types: Tuple[DatabaseType, ...]
    is_daily: bool
    is_weekly: bool
    display_order: int


CATALOG: Dict[CheckCategory, CategoryTemplate] = {
    CheckCategory.STANDARD: CategoryTemplate(
        description="Primary, Standby, Archive, GIS, Pilot databases",
        database_types=(
            DatabaseType.PRIMARY,
            DatabaseType.STANDBY,
            DatabaseType.ARCHIVE,
            DatabaseType.GIS,
            DatabaseType.PILOT,
        ),
        daily_checks=(
            "DB Instance Availability",
            "Alert Log: Errors and Warnings",
            "Active Session Count",
            "DB Full Backup",
            "Archive Log Backup",
            "DB Load from OEM",
            "DB Jobs",
            "Check Cluster Services",
            "Check SCAN Services",
            "Long Running Queries",
            "Database Locks",
            "Listener Status",
            "Connection Test",
        ),
        weekly_checks=(
            "Production DB Size",
            "Archive DB Size",
            "Invalid Objects Count",
            "Instance Start Date",
            "Tablespace Usage",
        ),
    ),
    CheckCategory.OEM: CategoryTemplate(
        description="Oracle Enterprise Manager",
        database_types=(DatabaseType.OEM,),
        daily_checks=(
            "OMS Status",
            "Instance Availability",
            "Errors and Warnings",
            "AWR Reports",
            "DB Full Backup",
            "DB Jobs",
            "Long Running Queries",
            "Repository DB Availability",
            "Repository DB Space",
            "Management Agents Status",
            "Agent Version Validation",
            "Database Targets Reachable",
            "Critical Alerts Review",
            "Performance Charts Review",
            "Compliance Standards Review",
        ),
        weekly_checks=(
            "Repository DB Size",
            "Agent Health Summary",
            "Target Status Summary",
        ),
    ),
    CheckCategory.AUDIT_VAULT: CategoryTemplate(
        description="Oracle Audit Vault",
        database_types=(DatabaseType.AUDIT_VAULT,),
        daily_checks=(
            "Instance Availability",
            "System Status CPU",
            "System Status Memory",
            "System Status Disk Space",
            "Audit Trail Collection",
            "Repository Growth Monitoring",
            "Agents Online Status",
            "Agents Collecting Data",
            "Upload Backlog",
            "Upload Connectivity",
            "Logs Review",
        ),
        weekly_checks=(
            "Repository Size",
            "Audit Data Growth",
            "Archive Status",
        ),
    ),
    CheckCategory.FIREWALL: CategoryTemplate(
        description="Database Firewall",
        database_types=(DatabaseType.FIREWALL,),
        daily_checks=(
            "Instance Availability",
            "Firewall Policies Active",
            "Blocking Rules Validation",
            "Alerting Rules Validation",
        ),
        weekly_checks=(
            "Policy Review",
            "Rule Effectiveness",
        ),
    ),
}

CHECK_DESCRIPTIONS: Dict[str, str] = {
    "DB Instance Availability": "Check if database instance is running",
    "Alert Log: Errors and Warnings": "Review alert log for errors",
    "Active Session Count": "Monitor active sessions",
    "DB Full Backup": "Verify full backup completion",
    "Archive Log Backup": "Check archive log backups",
    "DB Load from OEM": "Check database load metrics",
    "DB Jobs": "Verify database job status",
    "Check Cluster Services": "Verify cluster services running",
    "Check SCAN Services": "Verify SCAN listener status",
    "Long Running Queries": "Identify long-running queries",
    "Database Locks": "Check for blocking locks",
    "Listener Status": "Verify listener is running",
    "Connection Test": "Test database connectivity",
    "OMS Status": "Oracle Management Service status",
    "Repository DB Availability": "Check OEM repository",
    "Repository DB Space": "Monitor repository space",
    "Management Agents Status": "Verify agents are up",
    "Agent Version Validation": "Check agent versions",
    "Database Targets Reachable": "Confirm all targets reachable",
    "Critical Alerts Review": "Review critical incidents",
    "Performance Charts Review": "Check for anomalies",
    "Compliance Standards Review": "Review compliance violations",
    "Instance Availability": "Instance availability",
    "System Status CPU": "Check CPU usage",
    "System Status Memory": "Check memory usage",
    "System Status Disk Space": "Check disk space",
    "Audit Trail Collection": "Verify audit collection",
    "Repository Growth Monitoring": "Monitor repository growth",
    "Agents Online Status": "Check agent status",
    "Agents Collecting Data": "Verify data collection",
    "Upload Backlog": "Check upload backlog",
    "Upload Connectivity": "Verify upload connectivity",
    "Logs Review": "Review audit logs",
    "Firewall Policies Active": "Verify policies active",
    "Blocking Rules Validation": "Check blocking rules",
    "Alerting Rules Validation": "Validate alert rules",
}

# Reference instances loaded on first start.
DEFAULT_DATABASES: List[Dict[str, Any]] = [
    {
        "id": "cprdb", "name": "Control Pro-Database (2-Node RAC)", "short_code": "CPRDB",
        "instance_name": "CPRDB01", "host_name": "dpcckvmcprdb01", "vcpu": 24,
        "ram": "158 GB", "sga": "76 GB", "software_version": "Oracle 19c 19.23.0.0 - 64 bit",
        "type": DatabaseType.PRIMARY,
    },
    {
        "id": "cprdb2", "name": "Control Pro-Database (2-Node RAC)", "short_code": "CPRDB2",
        "instance_name": "CPRDB02", "host_name": "dpcckvmcprdb02", "vcpu": 24,
        "ram": "158 GB", "sga": "76 GB", "software_version": "Oracle 19c 19.23.0.0 - 64 bit",
        "type": DatabaseType.PRIMARY,
    },
    {
        "id": "cpsdb", "name": "Standby-Database (2-Node RAC)", "short_code": "CPSDB",
        "instance_name": "CPSDB01", "host_name": "dpcckvmcpsdb01", "vcpu": 24,
        "ram": "128 GB", "sga": "21 GB", "software_version": "Oracle 19c 19.23.0.0 - 64 bit",
        "type": DatabaseType.STANDBY,
    },
    {
        "id": "cpadb", "name": "Archive-Database (2-Node RAC)", "short_code": "CPADB",
        "instance_name": "CPADB01", "host_name": "dpcckvmcpadb01", "vcpu": 24,
        "ram": "158 GB", "sga": "20 GB", "software_version": "Oracle 19c 19.23.0.0 - 64 bit",
        "type": DatabaseType.ARCHIVE,
    },
    {
        "id": "cpgdb", "name": "GIS-Database (2-Node RAC)", "short_code": "CPGDB",
        "instance_name": "CPGDB01", "host_name": "dpcckvmcpgdb01", "vcpu": 24,
        "ram": "128 GB", "sga": None, "software_version": "Oracle 19c 19.23.0.0 - 64 bit",
        "type": DatabaseType.GIS,
    },
    {
        "id": "oemdb", "name": "Oracle Enterprise Manager", "short_code": "OEMDB",
        "instance_name": "CPEMDB01", "host_name": "dpcckvmcpemdb01", "vcpu": 16,
        "ram": "158 GB", "sga": "7.5 GB", "software_version": "13c - 64 bit",
        "type": DatabaseType.OEM,
    },
    {
        "id": "avs", "name": "Audit Vault Server", "short_code": "AVS",
        "instance_name": "AVSERVER01", "host_name": "dpcckvmavs01", "vcpu": 16,
        "ram": "64 GB", "sga": None, "software_version": "Audit Vault 20.3",
        "type": DatabaseType.AUDIT_VAULT,
    },
    {
        "id": "dbfw", "name": "Database Firewall", "short_code": "DBFW",
        "instance_name": "DBFW01", "host_name": "dpcckvmdbfw01", "vcpu": 8,
        "ram": "32 GB", "sga": None, "software_version": "Database Firewall 12.2",
        "type": DatabaseType.FIREWALL,
    },
]


def validate_catalog(catalog: Mapping[CheckCategory, CategoryTemplate]) -> None:
    """
    Check the category table against the known database types.

    :raises ValueError: a database type is missing or claimed twice, a
        category is missing, or a category repeats a check name.
    """
    missing = set(CheckCategory) - set(catalog)
    if missing:
        raise ValueError(f"categories without template: {sorted(c.value for c in missing)}")

    owner: Dict[DatabaseType, CheckCategory] = {}
    for category, template in catalog.items():
        for db_type in template.database_types:
            if db_type in owner:
                raise ValueError(
                    f"database type {db_type.value!r} is in both "
                    f"{owner[db_type].value!r} and {category.value!r}"
                )
            owner[db_type] = category
        for label, names in (("daily", template.daily_checks), ("weekly", template.weekly_checks)):
            if len(set(names)) != len(names):
                raise ValueError(f"duplicate {label} check in {category.value!r}")

    unmapped = set(DatabaseType) - set(owner)
    if unmapped:
        raise ValueError(f"database types without category: {sorted(t.value for t in unmapped)}")


def check_type_definitions(
    catalog: Mapping[CheckCategory, CategoryTemplate] = CATALOG,
) -> List[CheckTypeDefinition]:
    """
    Flatten the catalog into one definition per check name.

    A name used by several categories (e.g. "DB Full Backup") becomes a
    single check type applicable to the union of their database types.
    The display order is the position in the first category that uses it.
    """
    merged: Dict[str, Dict[str, Any]] = {}
    for template in catalog.values():
        for position, name in enumerate(template.daily_checks, start=1):
            entry = merged.setdefault(name, {"types": [], "daily": False, "weekly": False, "order": position})
            entry["daily"] = True
            entry["types"].extend(t for t in template.database_types if t not in entry["types"])
        for position, name in enumerate(template.weekly_checks, start=1):
            entry = merged.setdefault(name, {"types": [], "daily": False, "weekly": False, "order": position})
            entry["weekly"] = True
            entry["types"].extend(t for t in template.database_types if t not in entry["types"])

    return [
        CheckTypeDefinition(
            name=name,
            description=CHECK_DESCRIPTIONS.get(name, name),
            applicable_database_types=tuple(entry["types"]),
            is_daily=entry["daily"],
            is_weekly=entry["weekly"],
            display_order=entry["order"],
        )
        for name, entry in merged.items()
    ]


validate_catalog(CATALOG)
