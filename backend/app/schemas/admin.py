from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class UserStatusUpdate(BaseModel):
    is_active: bool


class SettingResponse(BaseModel):
    key: str
    value: Any
    description: Optional[str] = None
    category: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingUpdate(BaseModel):
    value: Any


class BulkSettingsUpdate(BaseModel):
    settings: Dict[str, Any] = Field(..., min_length=1)


class AuditLogResponse(BaseModel):
    id: str
    actor_id: Optional[str] = None
    actor_email: Optional[str] = None
    action: str
    target_type: str
    target_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SecuritySetupResponse(BaseModel):
    created_settings: List[str]
    ad_settings_created: bool
    admin_role_created: bool
