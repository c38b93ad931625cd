"""
Ad Service - paid promotional posts

Handles:
- Pricing (per-type base price x duration multiplier)
- Creation and renewal, each paid by a wallet debit in the same transaction
- Pause/resume, deletion, impression and click tracking
- Deactivation of expired ads (used by AdExpiryService)
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.exceptions import (
    AdLimitReachedError,
    AdNotFoundError,
    AuthorizationError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.models.ad import AdSettings, MessageAd, AdType, DURATION_MULTIPLIERS
from app.models.wallet import WalletTransactionSource
from app.services.wallet_service import wallet_service


def ad_reference(ad_id: str) -> str:
    return f"AD_{ad_id}"


class AdService:
    """Service for message ads"""

    # ==================== SETTINGS & PRICING ====================

    async def get_settings(self, db: AsyncSession) -> AdSettings:
        """The single ad settings row, created with defaults if missing"""
        ad_settings = (await db.execute(select(AdSettings).limit(1))).scalar_one_or_none()
        if not ad_settings:
            ad_settings = AdSettings()
            db.add(ad_settings)
            await db.flush()
            logger.info("[Ads] Created default ad settings")
        return ad_settings

    def allowed_durations(self) -> List[int]:
        return [d for d in settings.AD_DURATION_OPTIONS if d in DURATION_MULTIPLIERS]

    def calculate_cost(self, ad_settings: AdSettings, ad_type: AdType, duration_days: int) -> int:
        """Price in kobo, rounded to the nearest kobo"""
        if duration_days not in self.allowed_durations():
            raise ValidationError(
                f"Duration must be one of {self.allowed_durations()} days",
                field="duration_days",
            )
        base = ad_settings.base_cost(ad_type)
        return int(round(base * DURATION_MULTIPLIERS[duration_days]))

    async def quote(self, db: AsyncSession, ad_type: AdType, duration_days: int) -> Dict[str, Any]:
        ad_settings = await self.get_settings(db)
        cost = self.calculate_cost(ad_settings, ad_type, duration_days)
        return {
            "ad_type": AdType(ad_type),
            "duration_days": duration_days,
            "base_cost": ad_settings.base_cost(ad_type),
            "multiplier": DURATION_MULTIPLIERS[duration_days],
            "cost": cost,
        }

    # ==================== LIFECYCLE ====================

    async def count_active_ads(self, db: AsyncSession, user_id: str, exclude_ad_id: Optional[str] = None) -> int:
        query = select(func.count(MessageAd.id)).where(
            MessageAd.user_id == str(user_id),
            MessageAd.is_active.is_(True),
            MessageAd.expires_at > datetime.utcnow(),
        )
        if exclude_ad_id:
            query = query.where(MessageAd.id != str(exclude_ad_id))
        return (await db.execute(query)).scalar() or 0

    async def ensure_ad_slot(
        self, db: AsyncSession, user_id: str, ad_settings: AdSettings, exclude_ad_id: Optional[str] = None
    ) -> None:
        """Raise AdLimitReachedError when another running ad would exceed max_ads_per_user"""
        active = await self.count_active_ads(db, user_id, exclude_ad_id=exclude_ad_id)
        if active >= ad_settings.max_ads_per_user:
            raise AdLimitReachedError(ad_settings.max_ads_per_user)

    async def create_ad(
        self,
        db: AsyncSession,
        user_id: str,
        title: str,
        link_url: str,
        ad_type: AdType = AdType.NATIVE,
        duration_days: int = 7,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
        message_id: Optional[str] = None,
    ) -> MessageAd:
        """
        Create an ad and pay for it from the wallet.

        Raises:
            ValidationError: bad duration / missing fields
            AdLimitReachedError: user already has max_ads_per_user running
            InsufficientFundsError: wallet can't cover cost + min_wallet_balance
        """
        if not title or not title.strip():
            raise ValidationError("Title is required", field="title")
        if not link_url or not link_url.strip():
            raise ValidationError("Link URL is required", field="link_url")

        ad_type = AdType(ad_type)
        ad_settings = await self.get_settings(db)
        cost = self.calculate_cost(ad_settings, ad_type, duration_days)

        await self.ensure_ad_slot(db, user_id, ad_settings)

        ad_id = generate_uuid()
        title = title.strip()

        # Debit first: if the wallet can't cover it nothing else is written
        await wallet_service.debit(
            db,
            user_id,
            cost,
            source=WalletTransactionSource.AD_PURCHASE,
            description=f"Ad creation: {title}",
            reference=ad_reference(ad_id),
            metadata={"ad_type": ad_type.value, "duration_days": duration_days},
            keep_minimum=ad_settings.min_wallet_balance,
        )

        ad = MessageAd(
            id=ad_id,
            user_id=str(user_id),
            message_id=message_id,
            ad_type=ad_type,
            title=title,
            description=description,
            image_url=image_url,
            link_url=link_url.strip(),
            cost=cost,
            duration_days=duration_days,
            expires_at=datetime.utcnow() + timedelta(days=duration_days),
            impressions=0,
            clicks=0,
            is_active=True,
        )
        db.add(ad)
        await db.flush()

        logger.info(f"[Ads] Created ad {ad.id} ({ad_type.value}, {duration_days}d) for {user_id}, cost {cost}")
        return ad

    async def get_ad(self, db: AsyncSession, ad_id: str) -> MessageAd:
        ad = (await db.execute(select(MessageAd).where(MessageAd.id == str(ad_id)))).scalar_one_or_none()
        if not ad:
            raise AdNotFoundError(ad_id)
        return ad

    async def get_owned_ad(self, db: AsyncSession, ad_id: str, user_id: str, allow_admin: bool = False) -> MessageAd:
        ad = await self.get_ad(db, ad_id)
        if str(ad.user_id) != str(user_id) and not allow_admin:
            raise AuthorizationError("You can only manage your own ads")
        return ad

    async def renew_ad(self, db: AsyncSession, ad_id: str, user_id: str, duration_days: int) -> MessageAd:
        """Pay again and extend from whichever is later: now or the current expiry"""
        ad = await self.get_owned_ad(db, ad_id, user_id)
        ad_settings = await self.get_settings(db)
        cost = self.calculate_cost(ad_settings, ad.ad_type, duration_days)

        # A paused or expired ad takes a new slot when it runs again
        if not ad.is_active or ad.is_expired():
            await self.ensure_ad_slot(db, user_id, ad_settings, exclude_ad_id=ad.id)

        await wallet_service.debit(
            db,
            user_id,
            cost,
            source=WalletTransactionSource.AD_PURCHASE,
            description=f"Ad renewal: {ad.title}",
            reference=ad_reference(ad.id),
            metadata={"duration_days": duration_days, "renewal": True},
            keep_minimum=ad_settings.min_wallet_balance,
        )

        now = datetime.utcnow()
        start = ad.expires_at if ad.expires_at > now else now
        ad.expires_at = start + timedelta(days=duration_days)
        ad.duration_days = ad.duration_days + duration_days
        ad.cost = ad.cost + cost
        ad.is_active = True
        ad.updated_at = now
        await db.flush()

        logger.info(f"[Ads] Renewed ad {ad.id} by {duration_days}d, now expires {ad.expires_at.isoformat()}")
        return ad

    async def toggle_ad(self, db: AsyncSession, ad_id: str, user_id: str) -> MessageAd:
        """Pause a running ad or resume a paused one. Expired ads must be renewed instead."""
        ad = await self.get_owned_ad(db, ad_id, user_id)
        if not ad.is_active and ad.is_expired():
            raise ValidationError("Ad has expired; renew it to run again")
        if not ad.is_active:
            await self.ensure_ad_slot(db, user_id, await self.get_settings(db), exclude_ad_id=ad.id)
        ad.is_active = not ad.is_active
        ad.updated_at = datetime.utcnow()
        await db.flush()
        logger.info(f"[Ads] Ad {ad.id} {'resumed' if ad.is_active else 'paused'}")
        return ad

    async def delete_ad(self, db: AsyncSession, ad_id: str, user_id: str, is_admin: bool = False) -> None:
        """No refund is issued for the unused period"""
        ad = await self.get_owned_ad(db, ad_id, user_id, allow_admin=is_admin)
        await db.delete(ad)
        await db.flush()
        logger.info(f"[Ads] Deleted ad {ad_id}")

    async def deactivate_ad(self, db: AsyncSession, ad_id: str) -> MessageAd:
        ad = await self.get_ad(db, ad_id)
        ad.is_active = False
        ad.updated_at = datetime.utcnow()
        await db.flush()
        return ad

    # ==================== DELIVERY & TRACKING ====================

    async def list_user_ads(self, db: AsyncSession, user_id: str) -> List[MessageAd]:
        result = await db.execute(
            select(MessageAd)
            .where(MessageAd.user_id == str(user_id))
            .order_by(MessageAd.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_feed(self, db: AsyncSession, ad_type: Optional[AdType] = None, limit: int = 10) -> List[MessageAd]:
        """Running ads for display; each served ad counts one impression"""
        query = select(MessageAd).where(
            MessageAd.is_active.is_(True),
            MessageAd.expires_at > datetime.utcnow(),
        )
        if ad_type:
            query = query.where(MessageAd.ad_type == AdType(ad_type))
        query = query.order_by(MessageAd.impressions.asc(), MessageAd.created_at.desc()).limit(limit)

        ads = list((await db.execute(query)).scalars().all())
        if ads:
            await db.execute(
                update(MessageAd)
                .where(MessageAd.id.in_([ad.id for ad in ads]))
                .values(impressions=MessageAd.impressions + 1)
                .execution_options(synchronize_session=False)
            )
            for ad in ads:
                ad.impressions = (ad.impressions or 0) + 1
        return ads

    async def record_click(self, db: AsyncSession, ad_id: str) -> MessageAd:
        ad = await self.get_ad(db, ad_id)
        if not ad.is_active or ad.is_expired():
            raise ValidationError("Ad is not running")
        await db.execute(
            update(MessageAd)
            .where(MessageAd.id == ad.id)
            .values(clicks=MessageAd.clicks + 1)
            .execution_options(synchronize_session=False)
        )
        ad.clicks = (ad.clicks or 0) + 1
        return ad

    def stats(self, ads: List[MessageAd]) -> Dict[str, Any]:
        impressions = sum(ad.impressions or 0 for ad in ads)
        clicks = sum(ad.clicks or 0 for ad in ads)
        now = datetime.utcnow()
        return {
            "total_ads": len(ads),
            "active_ads": sum(1 for ad in ads if ad.is_active and ad.expires_at > now),
            "total_spent": sum(ad.cost or 0 for ad in ads),
            "impressions": impressions,
            "clicks": clicks,
            "ctr": round(clicks / impressions * 100, 2) if impressions else 0.0,
        }

    # ==================== EXPIRY ====================

    async def deactivate_expired(self, db: AsyncSession) -> int:
        """Flip is_active off for ads past expires_at. Returns rows changed."""
        result = await db.execute(
            update(MessageAd)
            .where(MessageAd.is_active.is_(True), MessageAd.expires_at <= datetime.utcnow())
            .values(is_active=False, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


# Singleton instance
ad_service = AdService()
