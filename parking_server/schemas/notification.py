# parking_server/schemas/notification.py

from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from ..models.notification import NotificationType


class NotificationOut(BaseModel):
    """Schema for notification output"""
    id: int
    user_id: int
    reservation_id: Optional[int] = None
    notification_type: NotificationType
    title: str
    message: str
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    class Config:
        from_attributes = True
