from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime

from app.core.database import get_db
from app.core.config import settings
from app.core.exceptions import MFARequiredError, InvalidMFACodeError, ValidationError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_token,
    constant_time_equals,
)
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import limiter, LOGIN_LIMIT, REGISTER_LIMIT
from app.models.role import RoleName, UserRoleAssignment
from app.models.user import User
from app.schemas.auth import (
    UserRegister,
    UserLogin,
    RefreshRequest,
    Token,
    LoginResponse,
    UserResponse,
    ProfileUpdate,
    ChangePasswordRequest,
    SetupAdminRequest,
)
from app.modules.auth.dependencies import get_current_user
from app.services.audit_service import log_action
from app.services.mfa_service import mfa_service
from app.services.settings_service import get_setting_value
from app.services.user_service import create_user, get_user_by_email, serialize_user


router = APIRouter()


def issue_tokens(user: User) -> dict:
    token_data = {"sub": str(user.id), "email": user.email}
    return {
        "access_token": create_access_token(token_data),
        "refresh_token": create_refresh_token(token_data),
        "token_type": "bearer",
    }


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register new user (rate limited: 3/min)"""
    client_ip = request.client.host if request.client else "unknown"

    if not await get_setting_value(db, "general.signup_enabled", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sign ups are currently disabled"
        )

    profile = user_data.model_dump(exclude={"email", "password", "full_name"})
    try:
        user = await create_user(
            db,
            email=user_data.email,
            password=user_data.password,
            full_name=user_data.full_name,
            **profile,
        )
    except ValidationError as e:
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason=e.message,
            client_ip=client_ip
        )
        raise

    await db.commit()
    await db.refresh(user)

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        client_ip=client_ip
    )
    return await serialize_user(db, user)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    Login with email and password (rate limited: 5/min).

    Accounts with MFA enabled must also send ``totp_code``; without it the
    response is 401 with error code MFA_REQUIRED so the client can prompt.
    """
    client_ip = request.client.host if request.client else "unknown"

    user = await get_user_by_email(db, credentials.email)
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    if await mfa_service.is_enabled(db, user.id):
        if not credentials.totp_code:
            raise MFARequiredError()
        if not await mfa_service.check_login(db, user, credentials.totp_code):
            logger.log_auth_event(
                event="login",
                success=False,
                user_email=user.email,
                reason="Invalid MFA code",
                client_ip=client_ip
            )
            raise InvalidMFACodeError()

    user.last_login = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip
    )

    return {
        **issue_tokens(user),
        "user": await serialize_user(db, user),
    }


@router.post("/refresh", response_model=Token)
async def refresh_token(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    payload = decode_token(data.refresh_token)

    if payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    result = await db.execute(select(User).where(User.id == str(payload.get("sub"))))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return issue_tokens(user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user info"""
    return await serialize_user(db, current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    updates: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update own profile fields"""
    data = updates.model_dump(exclude_unset=True)

    if data.get("reg_number") and data["reg_number"] != current_user.reg_number:
        taken = await db.execute(
            select(User.id).where(User.reg_number == data["reg_number"], User.id != current_user.id)
        )
        if taken.first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Registration number already registered"
            )

    for field, value in data.items():
        setattr(current_user, field, value)
    current_user.updated_at = datetime.utcnow()

    await db.commit()
    await db.refresh(current_user)
    return await serialize_user(db, current_user)


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    if not verify_password(data.current_password, current_user.hashed_password):
        logger.log_auth_event("change_password", False, current_user.email, "wrong current password")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )
    if data.current_password == data.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from the current one"
        )

    current_user.hashed_password = get_password_hash(data.new_password)
    await log_action(db, current_user.id, "password_changed", "user", current_user.id, request=request)
    await db.commit()

    logger.log_auth_event("change_password", True, current_user.email)
    return {"success": True, "message": "Password updated"}


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards them"""
    logger.log_auth_event("logout", True, current_user.email)
    return {"success": True, "message": "Logged out"}


@router.post("/setup-admin", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(LOGIN_LIMIT)
async def setup_admin(
    request: Request,
    data: SetupAdminRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Create the first administrator.

    Needs ADMIN_SETUP_TOKEN; refused once any admin exists.
    """
    if not settings.ADMIN_SETUP_TOKEN or not constant_time_equals(data.setup_token, settings.ADMIN_SETUP_TOKEN):
        logger.log_auth_event("setup_admin", False, data.email, "bad setup token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid setup token"
        )

    superuser = await db.execute(select(User.id).where(User.is_superuser.is_(True)).limit(1))
    admin_role = await db.execute(
        select(UserRoleAssignment.id).where(UserRoleAssignment.role == RoleName.ADMIN).limit(1)
    )
    if superuser.first() or admin_role.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An administrator already exists"
        )

    user = await create_user(
        db,
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        is_superuser=True,
        roles=[RoleName.ADMIN],
    )
    await log_action(db, user.id, "admin_bootstrapped", "user", user.id, request=request)
    await db.commit()
    await db.refresh(user)

    logger.log_auth_event("setup_admin", True, user.email)
    return {
        **issue_tokens(user),
        "user": await serialize_user(db, user),
    }
