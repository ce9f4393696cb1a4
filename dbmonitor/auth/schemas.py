from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dbmonitor.auth.enums import ApprovalStatus, UserRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole
    approval_status: ApprovalStatus
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RoleUpdate(BaseModel):
    role: UserRole


class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class UserContext(BaseModel):
    """Identity of the caller, resolved from the token for one request."""

    id: int
    email: str
    name: str
    role: UserRole
    approval_status: ApprovalStatus

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
