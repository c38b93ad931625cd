"""
Message ads.

Creating or renewing an ad debits the caller's wallet in the same
transaction that writes the ad.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.models.ad import AdType
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_user_roles
from app.models.role import RoleName
from app.schemas.ads import (
    AdCreate,
    AdRenew,
    AdResponse,
    AdFeedItem,
    AdQuoteResponse,
    AdSettingsResponse,
    AdStats,
)
from app.services.ad_service import ad_service
from app.services.audit_service import log_action
from app.services.settings_service import get_setting_value

router = APIRouter()


async def _require_ads_enabled(db: AsyncSession) -> None:
    if not await get_setting_value(db, "features.ads_enabled", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Ads are currently disabled"
        )


@router.get("/settings", response_model=AdSettingsResponse)
async def get_ad_settings(db: AsyncSession = Depends(get_db)):
    """Public pricing table"""
    ad_settings = await ad_service.get_settings(db)
    await db.commit()
    return ad_settings


@router.get("/quote", response_model=AdQuoteResponse)
async def quote_ad(
    ad_type: AdType = Query(AdType.NATIVE),
    duration_days: int = Query(7),
    db: AsyncSession = Depends(get_db)
):
    return await ad_service.quote(db, ad_type, duration_days)


@router.post("", response_model=AdResponse, status_code=status.HTTP_201_CREATED)
async def create_ad(
    data: AdCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create an ad paid from the wallet (402 when the balance is too low)"""
    await _require_ads_enabled(db)
    ad = await ad_service.create_ad(
        db,
        current_user.id,
        title=data.title,
        link_url=data.link_url,
        ad_type=data.ad_type,
        duration_days=data.duration_days,
        description=data.description,
        image_url=data.image_url,
        message_id=data.message_id,
    )
    await db.commit()
    await db.refresh(ad)
    return ad


@router.get("/mine", response_model=List[AdResponse])
async def my_ads(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await ad_service.list_user_ads(db, current_user.id)


@router.get("/mine/stats", response_model=AdStats)
async def my_ad_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ads = await ad_service.list_user_ads(db, current_user.id)
    return ad_service.stats(ads)


@router.get("/feed", response_model=List[AdFeedItem])
async def ad_feed(
    ad_type: Optional[AdType] = None,
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    """Running ads for display; each one served counts an impression"""
    ads = await ad_service.get_feed(db, ad_type, limit)
    await db.commit()
    return ads


@router.post("/{ad_id}/click")
async def record_click(ad_id: str, db: AsyncSession = Depends(get_db)):
    ad = await ad_service.record_click(db, ad_id)
    await db.commit()
    return {"link_url": ad.link_url, "clicks": ad.clicks}


@router.patch("/{ad_id}/toggle", response_model=AdResponse)
async def toggle_ad(
    ad_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ad = await ad_service.toggle_ad(db, ad_id, current_user.id)
    await db.commit()
    await db.refresh(ad)
    return ad


@router.post("/{ad_id}/renew", response_model=AdResponse)
async def renew_ad(
    ad_id: str,
    data: AdRenew,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _require_ads_enabled(db)
    ad = await ad_service.renew_ad(db, ad_id, current_user.id, data.duration_days)
    await db.commit()
    await db.refresh(ad)
    return ad


@router.delete("/{ad_id}")
async def delete_ad(
    ad_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Owners delete their own ads; admins can delete any (audited). No refund."""
    is_admin = RoleName.ADMIN in await get_user_roles(db, current_user)
    ad = await ad_service.get_ad(db, ad_id)
    await ad_service.delete_ad(db, ad_id, current_user.id, is_admin=is_admin)
    if ad.user_id != current_user.id:
        await log_action(db, current_user.id, "ad_deleted", "ad", ad_id,
                         details={"owner_id": ad.user_id, "title": ad.title}, request=request)
    await db.commit()
    return {"success": True, "message": "Ad deleted"}
