from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.role import RoleName, RoleRequestStatus


class RoleAssignmentCreate(BaseModel):
    role: RoleName
    faculty_id: Optional[str] = None
    department_id: Optional[str] = None
    level: Optional[int] = None


class RoleAssignmentResponse(BaseModel):
    id: str
    user_id: str
    role: RoleName
    faculty_id: Optional[str] = None
    department_id: Optional[str] = None
    level: Optional[int] = None
    granted_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RoleRequestCreate(BaseModel):
    role: RoleName
    reason: Optional[str] = Field(None, max_length=2000)
    faculty_id: Optional[str] = None
    department_id: Optional[str] = None
    level: Optional[int] = None


class RoleRequestReview(BaseModel):
    note: Optional[str] = Field(None, max_length=500)


class RoleRequestResponse(BaseModel):
    id: str
    user_id: str
    role: RoleName
    reason: Optional[str] = None
    faculty_id: Optional[str] = None
    department_id: Optional[str] = None
    level: Optional[int] = None
    status: RoleRequestStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
