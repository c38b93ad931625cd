from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from app.models.link import CommunityLinkType, CustomLinkCategory


def _check_url(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return v


class CommunityLinkCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    url: str
    type: CommunityLinkType = CommunityLinkType.OTHER
    description: Optional[str] = None

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        return _check_url(v)


class CommunityLinkUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = None
    type: Optional[CommunityLinkType] = None
    description: Optional[str] = None

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        return _check_url(v)


class CommunityLinkResponse(BaseModel):
    id: str
    name: str
    url: str
    type: CommunityLinkType
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CustomLinkCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    url: str
    category: CustomLinkCategory = CustomLinkCategory.OTHER
    description: Optional[str] = None
    is_active: bool = True

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        return _check_url(v)


class CustomLinkUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = None
    category: Optional[CustomLinkCategory] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        return _check_url(v)


class CustomLinkResponse(BaseModel):
    id: str
    name: str
    url: str
    category: CustomLinkCategory
    description: Optional[str] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
