from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class CommunityMessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    topic: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    mentions: Optional[List[str]] = None
    is_anonymous: bool = False


class CommunityMessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    topic: Optional[str] = Field(None, max_length=100)


class MessageAuthor(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class CommunityMessageResponse(BaseModel):
    id: str
    parent_id: Optional[str] = None
    content: str
    topic: Optional[str] = None
    image_url: Optional[str] = None
    mentions: Optional[List[str]] = None
    is_pinned: bool
    is_anonymous: bool
    # None for anonymous posts
    author: Optional[MessageAuthor] = None
    reply_count: int = 0
    created_at: datetime
    edited_at: Optional[datetime] = None


class CommunityThreadResponse(CommunityMessageResponse):
    replies: List[CommunityMessageResponse] = []


class TopicCount(BaseModel):
    topic: str
    count: int
