"""
Role assignments and role requests.

A user can hold several roles at once (e.g. course_rep for a department and
moderator). Scoped roles carry the faculty/department/level they apply to.
"""

from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, Enum as SQLEnum, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class RoleName(str, enum.Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    COURSE_REP = "course_rep"
    USER = "user"


# Roles a user can ask for; admin is only granted by another admin
REQUESTABLE_ROLES = (RoleName.MODERATOR, RoleName.COURSE_REP)


class RoleRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class UserRoleAssignment(Base):
    """One row per (user, role)"""
    __tablename__ = "user_roles"

    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
        Index('ix_user_roles_user', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(SQLEnum(RoleName), nullable=False)

    # Scope (course reps, moderators of one faculty)
    faculty_id = Column(GUID, ForeignKey("faculties.id", ondelete="SET NULL"), nullable=True)
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    level = Column(Integer, nullable=True)

    granted_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="role_assignments", foreign_keys=[user_id])

    def __repr__(self):
        return f"<UserRole {self.user_id}: {self.role}>"


class RoleRequest(Base):
    """A user's request for an elevated role, reviewed by an admin"""
    __tablename__ = "role_requests"

    __table_args__ = (
        Index('ix_role_requests_user', 'user_id'),
        Index('ix_role_requests_status', 'status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(SQLEnum(RoleName), nullable=False)
    reason = Column(Text, nullable=True)

    faculty_id = Column(GUID, ForeignKey("faculties.id", ondelete="SET NULL"), nullable=True)
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    level = Column(Integer, nullable=True)

    status = Column(SQLEnum(RoleRequestStatus), default=RoleRequestStatus.PENDING, nullable=False)
    reviewed_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    review_note = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<RoleRequest {self.user_id}: {self.role} ({self.status})>"
