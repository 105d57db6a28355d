from __future__ import annotations

from pydantic import BaseModel

from .enums import NotificationType


class Notification(BaseModel):
    id: str
    title: str
    message: str
    timestamp: str  # ISO-8601, UTC
    type: NotificationType
    read: bool = False
    color: str | None = None
    icon_type: str | None = None
    case_id: str | None = None
    program_type: str | None = None
