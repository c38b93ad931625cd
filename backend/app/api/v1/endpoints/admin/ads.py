"""
Admin ad moderation and pricing.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Optional

from app.core.database import get_db
from app.models import User, MessageAd, AdType
from app.modules.auth.dependencies import get_current_admin
from app.schemas.ads import AdSettingsResponse, AdSettingsUpdate, AdResponse
from app.services.ad_service import ad_service
from app.services.audit_service import log_action, diff_fields
from app.utils.pagination import paginate

settings_router = APIRouter()
router = APIRouter()


def ad_serializer(ad: MessageAd) -> dict:
    return AdResponse.model_validate(ad).model_dump()


@settings_router.get("", response_model=AdSettingsResponse)
async def get_ad_settings(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    ad_settings = await ad_service.get_settings(db)
    await db.commit()
    return ad_settings


@settings_router.put("", response_model=AdSettingsResponse)
async def update_ad_settings(
    data: AdSettingsUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Prices apply to new ads and renewals only"""
    ad_settings = await ad_service.get_settings(db)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    changes = diff_fields(ad_settings, update_data)

    for field, value in update_data.items():
        setattr(ad_settings, field, value)
    ad_settings.updated_by = current_admin.id
    ad_settings.updated_at = datetime.utcnow()

    await log_action(db, current_admin.id, "ad_settings_updated", "ad_settings", ad_settings.id,
                     details=changes, request=request)
    await db.commit()
    await db.refresh(ad_settings)
    return ad_settings


@router.get("")
async def list_ads(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    ad_type: Optional[AdType] = None,
    is_active: Optional[bool] = None,
    user_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = select(MessageAd)
    if ad_type:
        query = query.where(MessageAd.ad_type == ad_type)
    if is_active is not None:
        query = query.where(MessageAd.is_active.is_(is_active))
    if user_id:
        query = query.where(MessageAd.user_id == user_id)
    query = query.order_by(MessageAd.created_at.desc())
    return await paginate(db, query, page, page_size, serializer=ad_serializer)


@router.post("/{ad_id}/deactivate", response_model=AdResponse)
async def deactivate_ad(
    ad_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Stop an ad without refunding it"""
    ad = await ad_service.deactivate_ad(db, ad_id)
    await log_action(db, current_admin.id, "ad_deactivated", "ad", ad.id,
                     details={"owner_id": ad.user_id, "title": ad.title}, request=request)
    await db.commit()
    await db.refresh(ad)
    return ad


@router.delete("/{ad_id}")
async def delete_ad(
    ad_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    ad = await ad_service.get_ad(db, ad_id)
    details = {"owner_id": ad.user_id, "title": ad.title}
    await ad_service.delete_ad(db, ad_id, current_admin.id, is_admin=True)
    await log_action(db, current_admin.id, "ad_deleted", "ad", ad_id, details=details, request=request)
    await db.commit()
    return {"success": True, "message": "Ad deleted"}
