from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class SystemSetting(Base):
    """Key/value site settings editable by admins"""
    __tablename__ = "system_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    key = Column(String(100), unique=True, nullable=False, index=True)

    # Stored as JSON so booleans, numbers and strings keep their type
    value = Column(JSON, nullable=False)

    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)  # 'general', 'features'

    updated_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<SystemSetting {self.key}>"
