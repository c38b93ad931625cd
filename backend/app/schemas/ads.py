from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from app.models.ad import AdType


class AdSettingsResponse(BaseModel):
    ad_cost_native: int
    ad_cost_banner: int
    ad_cost_slider: int
    max_ads_per_user: int
    min_wallet_balance: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdSettingsUpdate(BaseModel):
    ad_cost_native: Optional[int] = Field(None, ge=0)
    ad_cost_banner: Optional[int] = Field(None, ge=0)
    ad_cost_slider: Optional[int] = Field(None, ge=0)
    max_ads_per_user: Optional[int] = Field(None, ge=1, le=100)
    min_wallet_balance: Optional[int] = Field(None, ge=0)


class AdQuoteResponse(BaseModel):
    ad_type: AdType
    duration_days: int
    base_cost: int
    multiplier: float
    cost: int


class AdCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    link_url: str = Field(..., min_length=1)
    ad_type: AdType = AdType.NATIVE
    duration_days: int = 7
    description: Optional[str] = Field(None, max_length=2000)
    image_url: Optional[str] = None
    message_id: Optional[str] = None

    @field_validator('link_url')
    @classmethod
    def validate_link(cls, v):
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("Link URL must start with http:// or https://")
        return v


class AdRenew(BaseModel):
    duration_days: int


class AdResponse(BaseModel):
    id: str
    user_id: str
    message_id: Optional[str] = None
    ad_type: AdType
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    link_url: str
    cost: int
    duration_days: int
    expires_at: datetime
    impressions: int
    clicks: int
    ctr: float
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AdFeedItem(BaseModel):
    """Public view of a running ad (no spend figures)"""
    id: str
    ad_type: AdType
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    link_url: str

    class Config:
        from_attributes = True


class AdStats(BaseModel):
    total_ads: int
    active_ads: int
    total_spent: int
    impressions: int
    clicks: int
    ctr: float
