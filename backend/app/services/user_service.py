"""
User Service - account creation and API serialization
"""

from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UserNotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.modules.auth.dependencies import get_user_roles
from app.models.role import RoleName
from app.models.user import User
from app.schemas.auth import UserResponse
from app.services.role_service import role_service
from app.services.wallet_service import wallet_service


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = (await db.execute(select(User).where(User.id == str(user_id)))).scalar_one_or_none()
    if not user:
        raise UserNotFoundError(user_id)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    is_superuser: bool = False,
    roles: Optional[List[RoleName]] = None,
    **profile,
) -> User:
    """
    Create an account with the ``user`` role (plus any extra roles) and an
    empty wallet.

    Raises:
        ValidationError: email or registration number already taken
    """
    if await get_user_by_email(db, email):
        raise ValidationError("Email already registered", field="email")

    reg_number = profile.get("reg_number")
    if reg_number:
        taken = await db.execute(select(User.id).where(User.reg_number == reg_number))
        if taken.first():
            raise ValidationError("Registration number already registered", field="reg_number")

    user = User(
        email=email.lower(),
        hashed_password=get_password_hash(password),
        full_name=full_name,
        is_superuser=is_superuser,
        is_active=True,
        **profile,
    )
    db.add(user)
    await db.flush()

    for role in [RoleName.USER, *(roles or [])]:
        await role_service.assign_role(db, user.id, role)
    await wallet_service.get_wallet(db, user.id)

    logger.info(f"[Users] Created {user.email} ({user.id})")
    return user


async def serialize_user(db: AsyncSession, user: User) -> UserResponse:
    roles = await get_user_roles(db, user)
    response = UserResponse.model_validate(user)
    response.roles = sorted(role.value for role in roles)
    return response
