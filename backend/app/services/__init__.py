from app.services.wallet_service import WalletService, wallet_service
from app.services.ad_service import AdService, ad_service
from app.services.payment_service import PaymentService, payment_service
from app.services.mfa_service import MFAService, mfa_service
from app.services.role_service import RoleService, role_service
from app.services.event_service import EventService, event_service
from app.services.ticket_service import TicketService, ticket_service
from app.services.notification_service import NotificationService, notification_service

__all__ = [
    "WalletService",
    "wallet_service",
    "AdService",
    "ad_service",
    "PaymentService",
    "payment_service",
    "MFAService",
    "mfa_service",
    "RoleService",
    "role_service",
    "EventService",
    "event_service",
    "TicketService",
    "ticket_service",
    "NotificationService",
    "notification_service",
]
