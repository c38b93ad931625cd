"""Blog posts and contact form messages"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from app.models.content import ContactMessageStatus


class BlogPostCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    content: str = Field(..., min_length=1)
    summary: Optional[str] = Field(None, max_length=500)
    author: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = None
    published: bool = False


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    summary: Optional[str] = Field(None, max_length=500)
    author: Optional[str] = Field(None, max_length=255)
    image_url: Optional[str] = None
    published: Optional[bool] = None


class BlogPostResponse(BaseModel):
    id: str
    title: str
    content: str
    summary: Optional[str] = None
    author: Optional[str] = None
    image_url: Optional[str] = None
    published: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactMessageCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    subject: Optional[str] = Field(None, max_length=255)
    message: str = Field(..., min_length=5, max_length=5000)


class ContactMessageStatusUpdate(BaseModel):
    status: ContactMessageStatus


class ContactMessageResponse(BaseModel):
    id: str
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    status: ContactMessageStatus
    created_at: datetime

    class Config:
        from_attributes = True
