"""
Notification I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    type: str
    priority: str
    data: Dict[str, Any]
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class MarkAllReadResponse(BaseModel):
    updated: int
