"""
Audit trail helpers.

``log_action`` only adds the row to the session; it is committed together
with the change it describes.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog


async def log_action(
    db: AsyncSession,
    actor_id: Optional[str],
    action: str,
    target_type: str,
    target_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """Record an admin action or security event"""
    log = AuditLog(
        actor_id=str(actor_id) if actor_id else None,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id else None,
        details=details,
        ip_address=request.client.host if request and request.client else None,
        user_agent=request.headers.get("user-agent") if request else None,
    )
    db.add(log)
    return log


def diff_fields(obj: Any, updates: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """{field: {"old": ..., "new": ...}} for the fields that actually change"""
    changes = {}
    for field, new_value in updates.items():
        old_value = getattr(obj, field, None)
        if old_value != new_value:
            changes[field] = {"old": _jsonable(old_value), "new": _jsonable(new_value)}
    return changes


def _jsonable(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value") and isinstance(getattr(value, "value"), (str, int)):
        return value.value
    return value
