"""
Two-factor authentication (TOTP) endpoints.

Every state change is written to the audit log.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging_config import logger
from app.core.rate_limiter import limiter, MFA_LIMIT
from app.core.security import verify_password
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import (
    LoginResponse,
    MFACodeRequest,
    MFARecoverRequest,
    MFASetupResponse,
    MFAStatusResponse,
    RecoveryCodesResponse,
)
from app.services.audit_service import log_action
from app.services.mfa_service import mfa_service
from app.services.user_service import get_user_by_email, serialize_user
from app.api.v1.endpoints.auth import issue_tokens

router = APIRouter()


@router.get("/status", response_model=MFAStatusResponse)
async def mfa_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await mfa_service.status(db, current_user.id)


@router.post("/setup", response_model=MFASetupResponse)
async def mfa_setup(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Generate a new secret. It only takes effect once /verify accepts a code from it."""
    data = await mfa_service.setup(db, current_user)
    await log_action(db, current_user.id, "mfa_setup_started", "user", current_user.id, request=request)
    await db.commit()
    return data


@router.post("/verify", response_model=MFAStatusResponse)
@limiter.limit(MFA_LIMIT)
async def mfa_verify(
    request: Request,
    data: MFACodeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await mfa_service.enable(db, current_user, data.code)
    await log_action(db, current_user.id, "mfa_enabled", "user", current_user.id, request=request)
    await db.commit()
    return await mfa_service.status(db, current_user.id)


@router.post("/disable", response_model=MFAStatusResponse)
@limiter.limit(MFA_LIMIT)
async def mfa_disable(
    request: Request,
    data: MFACodeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await mfa_service.disable(db, current_user, data.code)
    await log_action(db, current_user.id, "mfa_disabled", "user", current_user.id, request=request)
    await db.commit()
    return await mfa_service.status(db, current_user.id)


@router.post("/recovery-codes", response_model=RecoveryCodesResponse)
async def regenerate_recovery_codes(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Issue a fresh set of recovery codes; previous codes stop working"""
    codes = await mfa_service.generate_recovery_codes(db, current_user)
    await log_action(
        db, current_user.id, "mfa_recovery_codes_generated", "user", current_user.id,
        details={"count": len(codes)}, request=request,
    )
    await db.commit()
    return {"codes": codes}


@router.post("/recover", response_model=LoginResponse)
@limiter.limit(MFA_LIMIT)
async def recover_account(
    request: Request,
    data: MFARecoverRequest,
    db: AsyncSession = Depends(get_db)
):
    """Lost authenticator: password + recovery code turns MFA off and logs in"""
    user = await get_user_by_email(db, data.email)
    if not user or not verify_password(data.password, user.hashed_password):
        logger.log_auth_event("mfa_recovery", False, data.email, "invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    await mfa_service.recover(db, user, data.recovery_code)
    await log_action(db, user.id, "mfa_recovered", "user", user.id, request=request)
    await db.commit()
    await db.refresh(user)

    return {
        **issue_tokens(user),
        "user": await serialize_user(db, user),
    }
