"""
System settings with defaults.

Defaults are inserted on startup and on first admin read; existing values
are never overwritten.
"""

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.system_setting import SystemSetting


DEFAULT_SETTINGS = {
    "general.site_name": {
        "value": settings.APP_NAME,
        "description": "The name of the portal",
        "category": "general"
    },
    "general.maintenance_mode": {
        "value": False,
        "description": "Enable maintenance mode",
        "category": "general"
    },
    "general.signup_enabled": {
        "value": True,
        "description": "Allow new user signups",
        "category": "general"
    },
    "general.current_academic_year": {
        "value": "2024/2025",
        "description": "Academic year shown on timetables",
        "category": "general"
    },
    "features.ads_enabled": {
        "value": True,
        "description": "Allow users to create paid ads",
        "category": "features"
    },
    "features.community_enabled": {
        "value": True,
        "description": "Enable the community message board",
        "category": "features"
    },
    "features.wallet_funding_enabled": {
        "value": True,
        "description": "Allow wallet top-ups through payment gateways",
        "category": "features"
    },
}


async def ensure_default_settings(db: AsyncSession) -> List[str]:
    """Insert missing defaults; returns the keys that were created"""
    created = []
    for key, config in DEFAULT_SETTINGS.items():
        existing = await db.scalar(select(SystemSetting).where(SystemSetting.key == key))
        if not existing:
            db.add(SystemSetting(
                key=key,
                value=config["value"],
                description=config["description"],
                category=config["category"]
            ))
            created.append(key)
    if created:
        await db.flush()
    return created


async def get_setting_value(db: AsyncSession, key: str, default: Any = None) -> Any:
    setting = await db.scalar(select(SystemSetting).where(SystemSetting.key == key))
    if setting is not None:
        return setting.value
    if key in DEFAULT_SETTINGS:
        return DEFAULT_SETTINGS[key]["value"]
    return default


async def get_public_settings(db: AsyncSession) -> Dict[str, Any]:
    """Settings the public site needs (no admin-only values)"""
    keys = [
        "general.site_name",
        "general.maintenance_mode",
        "general.signup_enabled",
        "general.current_academic_year",
        "features.ads_enabled",
        "features.community_enabled",
        "features.wallet_funding_enabled",
    ]
    return {key: await get_setting_value(db, key) for key in keys}
