"""
Rate Limiting for the UniPortal API
===================================
slowapi limiter keyed by user id (when authenticated) or client IP.
Uses Redis when REDIS_URL is configured, in-process memory otherwise.

Special endpoints have their own limits:
- /auth/login: 5 req/min (brute force protection)
- /auth/register: 3 req/min
- /payments/initialize: 10 req/min
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "3/minute"
PAYMENT_LIMIT = "10/minute"
MFA_LIMIT = "10/minute"
TICKET_RECOVERY_LIMIT = "5/minute"


def get_user_identifier(request: Request) -> str:
    """
    Rate limit key.

    Priority:
    1. Authenticated user ID (set on request.state by the auth dependency)
    2. IP address
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


def get_storage_uri() -> str:
    return settings.REDIS_URL or "memory://"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute", f"{settings.RATE_LIMIT_PER_HOUR}/hour"],
    storage_uri=get_storage_uri(),
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """429 with a Retry-After header"""
    retry_after = "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "code": "RATE_LIMITED",
                "message": "Too many requests. Please slow down.",
                "details": {"limit": str(exc.detail)},
            },
        },
        headers={"Retry-After": retry_after},
    )
