from enum import Enum


class DatabaseType(str, Enum):
    PRIMARY = "primary"
    STANDBY = "standby"
    ARCHIVE = "archive"
    GIS = "gis"
    OEM = "oem"
    PILOT = "pilot"
    AUDIT_VAULT = "audit_vault"
    FIREWALL = "firewall"


class CheckCategory(str, Enum):
    """Groups of database types that share one check template."""
    STANDARD = "standard"
    OEM = "oem"
    AUDIT_VAULT = "audit_vault"
    FIREWALL = "firewall"


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    NOT_CHECKED = "not_checked"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class CheckKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
