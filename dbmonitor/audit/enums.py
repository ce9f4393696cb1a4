from enum import Enum


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
