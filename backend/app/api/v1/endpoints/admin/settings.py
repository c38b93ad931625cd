"""
Admin System Settings endpoints.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Dict, List

from app.core.database import get_db
from app.core.exceptions import ResourceNotFoundError
from app.core.logging_config import logger
from app.models import User, SystemSetting, AdSettings, RoleName
from app.modules.auth.dependencies import get_current_admin
from app.schemas.admin import (
    SettingResponse, SettingUpdate, BulkSettingsUpdate, SecuritySetupResponse
)
from app.services.ad_service import ad_service
from app.services.audit_service import log_action
from app.services.role_service import role_service
from app.services.settings_service import DEFAULT_SETTINGS, ensure_default_settings

router = APIRouter()
security_router = APIRouter()


@router.get("", response_model=List[SettingResponse])
async def get_all_settings(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Get all system settings (missing defaults are created first)"""
    created = await ensure_default_settings(db)
    if created:
        await db.commit()

    result = await db.execute(select(SystemSetting).order_by(SystemSetting.category, SystemSetting.key))
    return result.scalars().all()


@router.get("/{key}", response_model=SettingResponse)
async def get_setting(
    key: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    setting = await db.scalar(select(SystemSetting).where(SystemSetting.key == key))
    if not setting:
        raise ResourceNotFoundError("Setting", key)
    return setting


async def _upsert_setting(db: AsyncSession, key: str, value, admin: User) -> Dict:
    setting = await db.scalar(select(SystemSetting).where(SystemSetting.key == key))
    old_value = setting.value if setting else None

    if setting:
        setting.value = value
        setting.updated_by = admin.id
        setting.updated_at = datetime.utcnow()
    else:
        default = DEFAULT_SETTINGS.get(key, {})
        setting = SystemSetting(
            key=key,
            value=value,
            description=default.get("description"),
            category=default.get("category", key.split(".")[0] if "." in key else "general"),
            updated_by=admin.id,
        )
        db.add(setting)

    return {"old": old_value, "new": value}


@router.put("/{key}", response_model=SettingResponse)
async def update_setting(
    key: str,
    data: SettingUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Update a single setting, creating it if it does not exist"""
    change = await _upsert_setting(db, key, data.value, current_admin)
    await log_action(db, current_admin.id, "setting_updated", "setting", key,
                     details={key: change}, request=request)
    await db.commit()

    logger.info(f"[Settings] {key} updated by {current_admin.email}")
    return await db.scalar(select(SystemSetting).where(SystemSetting.key == key))


@router.put("", response_model=List[SettingResponse])
async def bulk_update_settings(
    data: BulkSettingsUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Update several settings in one transaction"""
    changes = {}
    for key, value in data.settings.items():
        changes[key] = await _upsert_setting(db, key, value, current_admin)

    await log_action(db, current_admin.id, "settings_bulk_updated", "setting",
                     details=changes, request=request)
    await db.commit()

    result = await db.execute(
        select(SystemSetting).where(SystemSetting.key.in_(list(data.settings))).order_by(SystemSetting.key)
    )
    return result.scalars().all()


@security_router.post("/setup", response_model=SecuritySetupResponse)
async def security_setup(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """
    Bring a fresh deployment to a usable state.

    Creates missing default settings and the ad pricing row, and gives the
    calling admin an explicit ADMIN role row. Safe to call repeatedly.
    """
    had_ad_settings = (await db.execute(select(AdSettings.id).limit(1))).first() is not None
    created_settings = await ensure_default_settings(db)
    await ad_service.get_settings(db)

    admin_role_created = False
    if not await role_service.get_assignment(db, current_admin.id, RoleName.ADMIN):
        await role_service.assign_role(db, current_admin.id, RoleName.ADMIN, granted_by=current_admin.id)
        admin_role_created = True

    response = SecuritySetupResponse(
        created_settings=created_settings,
        ad_settings_created=not had_ad_settings,
        admin_role_created=admin_role_created,
    )
    await log_action(db, current_admin.id, "security_setup", "system",
                     details=response.model_dump(), request=request)
    await db.commit()
    return response
