from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AuditLog(Base):
    """Audit trail for admin actions and security events (MFA changes, role grants)"""
    __tablename__ = "audit_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    # Nullable so events outside a session (webhooks, failed logins) can be logged
    actor_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # e.g. 'faculty_created', 'role_granted', 'mfa_enabled'
    action = Column(String(100), nullable=False, index=True)
    target_type = Column(String(50), nullable=False)  # 'user', 'faculty', 'payment_gateway'...
    target_id = Column(String(100), nullable=True)

    # Changed fields, old/new values
    details = Column(JSON, nullable=True)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} by {self.actor_id}>"
