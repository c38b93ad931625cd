"""
Announcements and per-user inbox entries.

A Notification is written by an admin and shown to everyone in its audience
while it is active. Broadcasting it copies it into UserNotification rows so
each user gets their own read state.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Enum as SQLEnum, JSON, Index, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class NotificationType(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    notification_type = Column(SQLEnum(NotificationType), default=NotificationType.INFO, nullable=False)
    link = Column(Text, nullable=True)

    # Entries: "all", a level ("200"), or a department, faculty or campus name
    target_audience = Column(JSON, default=lambda: ["all"])

    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    broadcast_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Notification {self.title}>"

    def is_live(self, now: datetime = None) -> bool:
        now = now or datetime.utcnow()
        if not self.is_active:
            return False
        if self.start_date and self.start_date > now:
            return False
        if self.end_date and self.end_date < now:
            return False
        return True


class UserNotification(Base):
    __tablename__ = "user_notifications"

    __table_args__ = (
        UniqueConstraint('user_id', 'notification_id', name='uq_user_notification'),
        Index('ix_user_notifications_inbox', 'user_id', 'read_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Null for direct messages such as ticket receipts
    notification_id = Column(GUID, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=True)

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    notification_type = Column(SQLEnum(NotificationType), default=NotificationType.INFO, nullable=False)
    link = Column(Text, nullable=True)

    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_read(self) -> bool:
        return self.read_at is not None
