from enum import Enum


class UserRole(str, Enum):
    """Global user roles"""
    ADMIN = "admin"  # Approves users, manages reference data, verifies checks
    USER = "user"  # Submits and reads check results


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
