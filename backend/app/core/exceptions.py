"""
Custom Exceptions for UniPortal
===============================

Services raise these instead of HTTPException so that the same rules
(insufficient funds, missing records, bad signatures) read the same way
whether they are triggered from an endpoint, a webhook or a background task.
The API layer maps each family to a status code (see ``status_code_for``).

Usage:
    from app.core.exceptions import InsufficientFundsError

    if wallet.balance < amount:
        raise InsufficientFundsError(required=amount, available=wallet.balance)
"""

from typing import Optional, Any, Dict


class PortalError(Exception):
    """Base exception for all portal errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(PortalError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(PortalError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class MFARequiredError(AuthenticationError):
    """Account has MFA enabled and no code was supplied"""

    def __init__(self):
        super().__init__("Two-factor authentication code required")
        self.code = "MFA_REQUIRED"


class InvalidMFACodeError(AuthenticationError):
    """TOTP or recovery code did not verify"""

    def __init__(self, message: str = "Invalid authentication code"):
        super().__init__(message)
        self.code = "MFA_INVALID"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(PortalError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class FacultyNotFoundError(ResourceNotFoundError):
    def __init__(self, faculty_id: str):
        super().__init__("Faculty", faculty_id)


class AdNotFoundError(ResourceNotFoundError):
    def __init__(self, ad_id: str):
        super().__init__("Ad", ad_id)


class EventNotFoundError(ResourceNotFoundError):
    """Looked up by id or slug"""

    def __init__(self, event_id: str):
        super().__init__("Event", event_id)


class TicketNotFoundError(ResourceNotFoundError):
    def __init__(self, ticket_id: str):
        super().__init__("Ticket", ticket_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class PaymentNotFoundError(ResourceNotFoundError):
    """Looked up by reference rather than id"""

    def __init__(self, reference: str):
        super().__init__("Payment", reference)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(PortalError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConflictError(PortalError):
    """Uniqueness or state conflict"""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class AdLimitReachedError(ValidationError):
    def __init__(self, limit: int):
        super().__init__(f"You can only have {limit} active ads at a time")
        self.code = "AD_LIMIT_REACHED"
        self.details = {"max_ads_per_user": limit}


class TicketsSoldOutError(ConflictError):
    def __init__(self, ticket_type: str):
        super().__init__(f"No '{ticket_type}' tickets left for this event")
        self.code = "TICKETS_SOLD_OUT"
        self.details = {"ticket_type": ticket_type}


# ============================================
# Payment/Wallet Errors
# ============================================

class PaymentError(PortalError):
    """Payment operation failed"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="PAYMENT_ERROR")


class InsufficientFundsError(PaymentError):
    """Wallet balance doesn't cover the debit"""

    status_code = 402

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient wallet balance. Required: {required}, Available: {available}"
        )
        self.code = "INSUFFICIENT_FUNDS"
        self.details = {"required": required, "available": available}


class GatewayNotConfiguredError(PaymentError):
    """Provider unknown, missing or disabled"""

    def __init__(self, provider: str):
        super().__init__(f"Payment gateway '{provider}' is not configured or not enabled")
        self.code = "GATEWAY_NOT_CONFIGURED"
        self.details = {"provider": provider}


class PaymentGatewayError(PaymentError):
    """Provider API call failed or returned an unusable response"""

    status_code = 502

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider} error: {message}")
        self.code = "PAYMENT_GATEWAY_ERROR"
        self.details = {"provider": provider}


class InvalidSignatureError(PaymentError):
    """Webhook signature didn't match"""

    status_code = 401

    def __init__(self):
        super().__init__("Invalid webhook signature")
        self.code = "INVALID_SIGNATURE"


# ============================================
# Helper functions for API responses
# ============================================

def error_response(error: PortalError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }


def status_code_for(error: PortalError) -> int:
    return getattr(error, "status_code", 500)
