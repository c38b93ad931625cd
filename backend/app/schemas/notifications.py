"""Announcements and inbox entries"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.models.notification import NotificationType


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)
    notification_type: NotificationType = NotificationType.INFO
    link: Optional[str] = None
    target_audience: List[str] = ["all"]
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class NotificationUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=255)
    message: Optional[str] = Field(None, min_length=1, max_length=5000)
    notification_type: Optional[NotificationType] = None
    link: Optional[str] = None
    target_audience: Optional[List[str]] = None
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    notification_type: NotificationType
    link: Optional[str] = None
    target_audience: List[str]
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    broadcast_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserNotificationResponse(BaseModel):
    id: str
    notification_id: Optional[str] = None
    title: str
    message: str
    notification_type: NotificationType
    link: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class BroadcastResponse(BaseModel):
    notification_id: str
    recipients: int
