from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Index
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class UserMFA(Base):
    """TOTP secret for a user. ``enabled`` flips to true only after a code verifies."""
    __tablename__ = "user_mfa"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    secret = Column(String(64), nullable=True)
    # Replacement secret during re-enrolment; the current one keeps working until it verifies
    pending_secret = Column(String(64), nullable=True)
    enabled = Column(Boolean, default=False, nullable=False)
    verified_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<UserMFA {self.user_id} enabled={self.enabled}>"


class MFARecoveryCode(Base):
    """Single-use recovery code, stored as a bcrypt hash"""
    __tablename__ = "mfa_recovery_codes"

    __table_args__ = (
        Index('ix_mfa_recovery_codes_user', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code_hash = Column(String(255), nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
