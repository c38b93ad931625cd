from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, Set

from app.core.database import get_db
from app.core.logging_config import set_user_id
from app.core.security import decode_token
from app.core.types import is_valid_uuid
from app.models.user import User
from app.models.role import RoleName, UserRoleAssignment

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def get_user_roles(db: AsyncSession, user: User) -> Set[RoleName]:
    """Roles held by a user; superusers implicitly hold admin"""
    result = await db.execute(
        select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == str(user.id))
    )
    roles = {RoleName(role) for role in result.scalars().all()}
    if user.is_superuser:
        roles.add(RoleName.ADMIN)
    return roles


async def _user_from_token(token: str, db: AsyncSession) -> User:
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    if not is_valid_uuid(user_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    user = await _user_from_token(credentials.credentials, db)
    # Used by the rate limiter key and the log formatter
    request.state.user_id = str(user.id)
    set_user_id(str(user.id))
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Current user if a valid bearer token was sent, otherwise None"""
    if not credentials:
        return None
    try:
        return await _user_from_token(credentials.credentials, db)
    except HTTPException:
        return None


def require_roles(*allowed: RoleName):
    """
    Dependency factory guarding a route by role.

    Usage:
        @router.post("/pin", dependencies=[Depends(require_roles(RoleName.ADMIN, RoleName.MODERATOR))])
    """
    allowed_set = set(allowed)

    async def _checker(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db)
    ) -> User:
        roles = await get_user_roles(db, current_user)
        if not roles & allowed_set:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires one of roles: {', '.join(sorted(r.value for r in allowed_set))}"
            )
        return current_user

    return _checker


async def get_current_admin(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current admin user"""
    if current_user.is_superuser:
        return current_user
    roles = await get_user_roles(db, current_user)
    if RoleName.ADMIN not in roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


get_current_staff = require_roles(RoleName.ADMIN, RoleName.MODERATOR)


async def is_staff(db: AsyncSession, user: User) -> bool:
    roles = await get_user_roles(db, user)
    return bool(roles & {RoleName.ADMIN, RoleName.MODERATOR})
