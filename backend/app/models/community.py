from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, JSON, Index
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class CommunityMessage(Base):
    """
    Post on the community board. Replies point at their thread root through
    ``parent_id``; only one level of nesting is kept.
    """
    __tablename__ = "community_messages"

    __table_args__ = (
        Index('ix_community_messages_parent', 'parent_id'),
        Index('ix_community_messages_topic', 'topic'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(GUID, ForeignKey("community_messages.id", ondelete="CASCADE"), nullable=True)

    content = Column(Text, nullable=False)
    topic = Column(String(100), nullable=True)
    image_url = Column(Text, nullable=True)
    mentions = Column(JSON, nullable=True)  # list of user ids
    is_pinned = Column(Boolean, default=False, nullable=False)
    is_anonymous = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    edited_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<CommunityMessage {self.id}>"
