from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, Enum as SQLEnum, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class ContactMessageStatus(str, enum.Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


class BlogPost(Base):
    __tablename__ = "blog_posts"

    __table_args__ = (
        Index('ix_blog_posts_published', 'published', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    summary = Column(String(500), nullable=True)
    author = Column(String(255), nullable=True)
    image_url = Column(Text, nullable=True)
    published = Column(Boolean, default=False, nullable=False)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<BlogPost {self.title}>"


class ContactMessage(Base):
    """Message sent through the public contact form"""
    __tablename__ = "contact_messages"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(SQLEnum(ContactMessageStatus), default=ContactMessageStatus.NEW, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ContactMessage from {self.email}>"
