"""
Paid promotional posts ("message ads") and the single-row pricing table.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Enum as SQLEnum, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AdType(str, enum.Enum):
    NATIVE = "native"
    BANNER = "banner"
    SLIDER = "slider"


# Price multiplier per duration (days) applied to the per-type base price
DURATION_MULTIPLIERS = {
    1: 0.2,
    3: 0.5,
    7: 1.0,
    14: 1.8,
    30: 3.0,
}


class AdSettings(Base):
    """Ad pricing and limits; there is only ever one row"""
    __tablename__ = "ad_settings"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # Base prices in kobo for a 7-day run
    ad_cost_native = Column(Integer, default=100_000, nullable=False)
    ad_cost_banner = Column(Integer, default=200_000, nullable=False)
    ad_cost_slider = Column(Integer, default=300_000, nullable=False)

    max_ads_per_user = Column(Integer, default=5, nullable=False)
    # Balance that must remain after paying for an ad
    min_wallet_balance = Column(Integer, default=0, nullable=False)

    updated_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def base_cost(self, ad_type: AdType) -> int:
        return {
            AdType.NATIVE: self.ad_cost_native,
            AdType.BANNER: self.ad_cost_banner,
            AdType.SLIDER: self.ad_cost_slider,
        }[AdType(ad_type)]


class MessageAd(Base):
    __tablename__ = "message_ads"

    __table_args__ = (
        Index('ix_message_ads_user', 'user_id'),
        Index('ix_message_ads_active', 'is_active', 'expires_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Optional community post the ad promotes
    message_id = Column(GUID, ForeignKey("community_messages.id", ondelete="SET NULL"), nullable=True)

    ad_type = Column(SQLEnum(AdType), default=AdType.NATIVE, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    link_url = Column(Text, nullable=False)

    # Total paid in kobo (creation plus renewals)
    cost = Column(Integer, nullable=False)
    duration_days = Column(Integer, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    impressions = Column(Integer, default=0, nullable=False)
    clicks = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<MessageAd {self.title} ({self.ad_type})>"

    @property
    def ctr(self) -> float:
        """Click-through rate in percent, 2 decimals"""
        if not self.impressions:
            return 0.0
        return round(self.clicks / self.impressions * 100, 2)

    def is_expired(self, now: datetime = None) -> bool:
        return self.expires_at <= (now or datetime.utcnow())
