"""
MFA Service - TOTP (RFC 6238) second factor and recovery codes

TOTP parameters match common authenticator apps: SHA1, 6 digits, 30 second
period, 32 character base32 secret.
"""

import secrets
from datetime import datetime
from typing import Dict, List, Optional

import pyotp
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidMFACodeError, ValidationError
from app.core.logging_config import logger
from app.core.security import get_password_hash, verify_password
from app.models.mfa import UserMFA, MFARecoveryCode
from app.models.user import User

RECOVERY_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_recovery_code(length: int = None) -> str:
    length = length or settings.MFA_RECOVERY_CODE_LENGTH
    return "".join(secrets.choice(RECOVERY_CODE_ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    return (code or "").replace(" ", "").replace("-", "").strip().upper()


class MFAService:
    """Service for TOTP enrolment and verification"""

    async def get_record(self, db: AsyncSession, user_id: str) -> Optional[UserMFA]:
        result = await db.execute(select(UserMFA).where(UserMFA.user_id == str(user_id)))
        return result.scalar_one_or_none()

    async def is_enabled(self, db: AsyncSession, user_id: str) -> bool:
        record = await self.get_record(db, user_id)
        return bool(record and record.enabled and record.secret)

    async def status(self, db: AsyncSession, user_id: str) -> Dict[str, object]:
        record = await self.get_record(db, user_id)
        remaining = await self.remaining_recovery_codes(db, user_id)
        return {
            "enabled": bool(record and record.enabled),
            "configured": bool(record and record.secret),
            "recovery_codes_remaining": remaining,
        }

    async def setup(self, db: AsyncSession, user: User) -> Dict[str, str]:
        """
        Start (or restart) enrolment with a fresh secret.

        For a first enrolment MFA stays disabled until ``enable`` verifies a code
        from the new secret. When MFA is already on, the new secret is held as
        pending and the current one keeps guarding logins until then.
        """
        secret = pyotp.random_base32(length=32)
        record = await self.get_record(db, user.id)
        if record and record.enabled:
            record.pending_secret = secret
        elif record:
            record.secret = secret
            record.pending_secret = None
            record.verified_at = None
        else:
            record = UserMFA(user_id=str(user.id), secret=secret, enabled=False)
            db.add(record)
        await db.flush()

        totp = pyotp.TOTP(secret)
        return {
            "secret": secret,
            "provisioning_uri": totp.provisioning_uri(name=user.email, issuer_name=settings.MFA_ISSUER),
            "issuer": settings.MFA_ISSUER,
        }

    def verify_code(self, secret: Optional[str], code: Optional[str]) -> bool:
        """Accepts the current step and one step either side for clock drift"""
        if not secret or not code:
            return False
        code = normalize_code(code)
        if not code.isdigit() or len(code) != 6:
            return False
        return pyotp.TOTP(secret).verify(code, valid_window=1)

    async def enable(self, db: AsyncSession, user: User, code: str) -> UserMFA:
        record = await self.get_record(db, user.id)
        if not record or not (record.pending_secret or record.secret):
            raise ValidationError("Run MFA setup first")
        candidate = record.pending_secret or record.secret
        if not self.verify_code(candidate, code):
            logger.log_auth_event("mfa_verify", False, user.email, "invalid code")
            raise InvalidMFACodeError()
        record.secret = candidate
        record.pending_secret = None
        record.enabled = True
        record.verified_at = datetime.utcnow()
        await db.flush()
        logger.log_auth_event("mfa_verify", True, user.email)
        return record

    async def disable(self, db: AsyncSession, user: User, code: str) -> None:
        """Requires a valid TOTP or an unused recovery code"""
        record = await self.get_record(db, user.id)
        if not record or not record.enabled:
            raise ValidationError("MFA is not enabled")
        if not self.verify_code(record.secret, code) and not await self.consume_recovery_code(db, user.id, code):
            logger.log_auth_event("mfa_disable", False, user.email, "invalid code")
            raise InvalidMFACodeError()
        await self._clear(db, user.id, record)
        logger.log_auth_event("mfa_disable", True, user.email)

    async def _clear(self, db: AsyncSession, user_id: str, record: UserMFA) -> None:
        record.enabled = False
        record.secret = None
        record.pending_secret = None
        record.verified_at = None
        await db.execute(delete(MFARecoveryCode).where(MFARecoveryCode.user_id == str(user_id)))
        await db.flush()

    async def check_login(self, db: AsyncSession, user: User, code: Optional[str]) -> bool:
        """
        True when the login may proceed.

        Users without MFA always pass; users with MFA need a valid TOTP.
        """
        record = await self.get_record(db, user.id)
        if not record or not record.enabled:
            return True
        return self.verify_code(record.secret, code)

    # ==================== RECOVERY CODES ====================

    async def generate_recovery_codes(self, db: AsyncSession, user: User) -> List[str]:
        """Replace any existing codes; plaintext is returned once and never stored"""
        if not await self.is_enabled(db, user.id):
            raise ValidationError("Enable MFA before generating recovery codes")

        await db.execute(delete(MFARecoveryCode).where(MFARecoveryCode.user_id == str(user.id)))
        codes = [generate_recovery_code() for _ in range(settings.MFA_RECOVERY_CODE_COUNT)]
        for code in codes:
            db.add(MFARecoveryCode(user_id=str(user.id), code_hash=get_password_hash(code)))
        await db.flush()
        logger.info(f"[MFA] Generated {len(codes)} recovery codes for {user.email}")
        return codes

    async def remaining_recovery_codes(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(MFARecoveryCode.id).where(
                MFARecoveryCode.user_id == str(user_id),
                MFARecoveryCode.used_at.is_(None),
            )
        )
        return len(result.scalars().all())

    async def consume_recovery_code(self, db: AsyncSession, user_id: str, code: str) -> bool:
        code = normalize_code(code)
        if len(code) != settings.MFA_RECOVERY_CODE_LENGTH:
            return False
        result = await db.execute(
            select(MFARecoveryCode).where(
                MFARecoveryCode.user_id == str(user_id),
                MFARecoveryCode.used_at.is_(None),
            )
        )
        for stored in result.scalars().all():
            if verify_password(code, stored.code_hash):
                stored.used_at = datetime.utcnow()
                await db.flush()
                return True
        return False

    async def recover(self, db: AsyncSession, user: User, recovery_code: str) -> None:
        """Use a recovery code to switch MFA off (lost device)"""
        record = await self.get_record(db, user.id)
        if not record or not record.enabled:
            raise ValidationError("MFA is not enabled")
        if not await self.consume_recovery_code(db, user.id, recovery_code):
            logger.log_auth_event("mfa_recovery", False, user.email, "invalid recovery code")
            raise InvalidMFACodeError("Invalid recovery code")
        await self._clear(db, user.id, record)
        logger.log_auth_event("mfa_recovery", True, user.email)


# Singleton instance
mfa_service = MFAService()
