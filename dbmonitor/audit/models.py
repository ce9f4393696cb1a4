from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from dbmonitor.audit.enums import AuditStatus
from dbmonitor.db.base import Base


class AuditEvent(Base):
    """Append-only record of an administrative or security relevant action."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, index=True,
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity: Mapped[Optional[str]] = mapped_column(String(100))
    entity_id: Mapped[Optional[str]] = mapped_column(String(100))
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(
        String(20), default=AuditStatus.SUCCESS.value, nullable=False, index=True,
    )
    # IPv6 textual form fits in 45 characters
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
