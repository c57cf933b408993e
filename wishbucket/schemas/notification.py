# wishbucket/schemas/notification.py
from datetime import datetime
from typing import Any, Dict
from pydantic import BaseModel

from wishbucket.schemas.common import PaginatedResponse

class Notification(BaseModel):
    id: int
    type: str
    title: str
    message: str | None
    data: Dict[str, Any] | None = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class PaginatedNotifications(PaginatedResponse[Notification]):
    pass

class UnreadCount(BaseModel):
    count: int
