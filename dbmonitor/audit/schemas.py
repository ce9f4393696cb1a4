from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from dbmonitor.audit.enums import AuditStatus


class AuditEventOut(BaseModel):
    id: int
    user_id: Optional[int]
    action: str
    entity: Optional[str]
    entity_id: Optional[str]
    details: Optional[Dict[str, Any]]
    status: AuditStatus
    ip_address: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
