from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Enum as SQLEnum
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class CommunityLinkType(str, enum.Enum):
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    DISCORD = "discord"
    FACEBOOK = "facebook"
    OTHER = "other"


class CustomLinkCategory(str, enum.Enum):
    """Where on the site the link is rendered"""
    HERO = "hero"
    FOOTER = "footer"
    SIDEBAR = "sidebar"
    NAVBAR = "navbar"
    OTHER = "other"


class CommunityLink(Base):
    """Invite link to a student group chat"""
    __tablename__ = "community_links"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    type = Column(SQLEnum(CommunityLinkType), default=CommunityLinkType.OTHER, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<CommunityLink {self.name}>"


class CustomLink(Base):
    __tablename__ = "custom_links"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    category = Column(SQLEnum(CustomLinkCategory), default=CustomLinkCategory.OTHER, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<CustomLink {self.category}: {self.name}>"
