"""
Role Service - role assignments and role requests
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.role import (
    REQUESTABLE_ROLES,
    RoleName,
    RoleRequest,
    RoleRequestStatus,
    UserRoleAssignment,
)
from app.models.notification import NotificationType
from app.services.notification_service import notification_service


class RoleService:

    async def list_roles(self, db: AsyncSession, user_id: str) -> List[UserRoleAssignment]:
        result = await db.execute(
            select(UserRoleAssignment)
            .where(UserRoleAssignment.user_id == str(user_id))
            .order_by(UserRoleAssignment.created_at)
        )
        return list(result.scalars().all())

    async def get_assignment(self, db: AsyncSession, user_id: str, role: RoleName) -> Optional[UserRoleAssignment]:
        result = await db.execute(
            select(UserRoleAssignment).where(
                UserRoleAssignment.user_id == str(user_id),
                UserRoleAssignment.role == RoleName(role),
            )
        )
        return result.scalar_one_or_none()

    async def assign_role(
        self,
        db: AsyncSession,
        user_id: str,
        role: RoleName,
        granted_by: Optional[str] = None,
        faculty_id: Optional[str] = None,
        department_id: Optional[str] = None,
        level: Optional[int] = None,
    ) -> UserRoleAssignment:
        """Grant a role, or update the scope of one the user already holds"""
        role = RoleName(role)
        assignment = await self.get_assignment(db, user_id, role)
        if assignment:
            assignment.faculty_id = faculty_id
            assignment.department_id = department_id
            assignment.level = level
        else:
            assignment = UserRoleAssignment(
                user_id=str(user_id),
                role=role,
                faculty_id=faculty_id,
                department_id=department_id,
                level=level,
                granted_by=str(granted_by) if granted_by else None,
            )
            db.add(assignment)
        await db.flush()
        logger.info(f"[Roles] {role.value} granted to {user_id} by {granted_by or 'system'}")
        return assignment

    async def revoke_role(self, db: AsyncSession, user_id: str, role: RoleName) -> None:
        assignment = await self.get_assignment(db, user_id, role)
        if not assignment:
            raise ResourceNotFoundError("Role assignment", f"{user_id}:{RoleName(role).value}")
        await db.delete(assignment)
        await db.flush()
        logger.info(f"[Roles] {RoleName(role).value} revoked from {user_id}")

    # ==================== REQUESTS ====================

    async def create_request(
        self,
        db: AsyncSession,
        user_id: str,
        role: RoleName,
        reason: Optional[str] = None,
        faculty_id: Optional[str] = None,
        department_id: Optional[str] = None,
        level: Optional[int] = None,
    ) -> RoleRequest:
        role = RoleName(role)
        if role not in REQUESTABLE_ROLES:
            raise ValidationError(f"Role '{role.value}' cannot be requested", field="role")

        if await self.get_assignment(db, user_id, role):
            raise ConflictError(f"You already have the {role.value} role")

        pending = await db.execute(
            select(RoleRequest.id).where(
                RoleRequest.user_id == str(user_id),
                RoleRequest.role == role,
                RoleRequest.status == RoleRequestStatus.PENDING,
            )
        )
        if pending.first():
            raise ConflictError(f"You already have a pending request for {role.value}")

        request = RoleRequest(
            user_id=str(user_id),
            role=role,
            reason=reason,
            faculty_id=faculty_id,
            department_id=department_id,
            level=level,
            status=RoleRequestStatus.PENDING,
        )
        db.add(request)
        await db.flush()
        return request

    async def get_request(self, db: AsyncSession, request_id: str) -> RoleRequest:
        request = (await db.execute(select(RoleRequest).where(RoleRequest.id == str(request_id)))).scalar_one_or_none()
        if not request:
            raise ResourceNotFoundError("Role request", request_id)
        return request

    async def review_request(
        self,
        db: AsyncSession,
        request_id: str,
        reviewer_id: str,
        approve: bool,
        note: Optional[str] = None,
    ) -> RoleRequest:
        request = await self.get_request(db, request_id)
        if request.status != RoleRequestStatus.PENDING:
            raise ConflictError("Request has already been reviewed")

        request.status = RoleRequestStatus.APPROVED if approve else RoleRequestStatus.REJECTED
        request.reviewed_by = str(reviewer_id)
        request.reviewed_at = datetime.utcnow()
        request.review_note = note

        if approve:
            await self.assign_role(
                db,
                request.user_id,
                request.role,
                granted_by=reviewer_id,
                faculty_id=request.faculty_id,
                department_id=request.department_id,
                level=request.level,
            )

        role_label = RoleName(request.role).value.replace("_", " ")
        if approve:
            await notification_service.notify_user(
                db, request.user_id, f"Your {role_label} request was approved",
                note or f"You now have the {role_label} role.", NotificationType.SUCCESS,
            )
        else:
            await notification_service.notify_user(
                db, request.user_id, f"Your {role_label} request was declined",
                note or "Contact an administrator for details.", NotificationType.WARNING,
            )
        await db.flush()
        return request


# Singleton instance
role_service = RoleService()
