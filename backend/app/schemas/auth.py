from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.models.academic import LEVELS


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=255)
    phone: Optional[str] = Field(None, pattern=r'^\+?\d{10,14}$', description="Phone number, e.g. 08012345678 or +2348012345678")

    # Student details
    reg_number: Optional[str] = Field(None, max_length=50)
    faculty: Optional[str] = None
    department: Optional[str] = None
    level: Optional[int] = None
    campus: Optional[str] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        if v is not None and v not in LEVELS:
            raise ValueError(f"Level must be one of {LEVELS}")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    # Required only when the account has MFA enabled
    totp_code: Optional[str] = None


class RefreshRequest(BaseModel):
    refresh_token: str


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    reg_number: Optional[str] = None
    faculty: Optional[str] = None
    department: Optional[str] = None
    level: Optional[int] = None
    campus: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    is_superuser: bool = False
    created_at: datetime
    last_login: Optional[datetime] = None
    roles: List[str] = []

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, pattern=r'^\+?\d{10,14}$')
    reg_number: Optional[str] = Field(None, max_length=50)
    faculty: Optional[str] = None
    department: Optional[str] = None
    level: Optional[int] = None
    campus: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=1000)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        if v is not None and v not in LEVELS:
            raise ValueError(f"Level must be one of {LEVELS}")
        return v


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)


class SetupAdminRequest(BaseModel):
    setup_token: str
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2)


# ============================================
# MFA Schemas
# ============================================

class MFAStatusResponse(BaseModel):
    enabled: bool
    configured: bool
    recovery_codes_remaining: int = 0


class MFASetupResponse(BaseModel):
    secret: str
    provisioning_uri: str
    issuer: str


class MFACodeRequest(BaseModel):
    code: str = Field(..., min_length=6, max_length=32)


class RecoveryCodesResponse(BaseModel):
    codes: List[str]
    message: str = "Store these codes somewhere safe. Each can be used once."


class MFARecoverRequest(BaseModel):
    email: EmailStr
    password: str
    recovery_code: str = Field(..., min_length=16, max_length=32)
