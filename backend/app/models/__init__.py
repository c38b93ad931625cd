# Re-export all models for convenient imports
from app.models.user import User
from app.models.role import UserRoleAssignment, RoleRequest, RoleName, RoleRequestStatus, REQUESTABLE_ROLES
from app.models.mfa import UserMFA, MFARecoveryCode
from app.models.academic import (
    Faculty, Department, Lecture, Exam, ExamType, ExamStatus,
    DAYS_OF_WEEK, LEVELS, SEMESTERS,
)
from app.models.link import CommunityLink, CommunityLinkType, CustomLink, CustomLinkCategory
from app.models.content import BlogPost, ContactMessage, ContactMessageStatus
from app.models.community import CommunityMessage
from app.models.wallet import Wallet, WalletTransaction, WalletTransactionType, WalletTransactionSource
from app.models.ad import AdSettings, MessageAd, AdType, DURATION_MULTIPLIERS
from app.models.payment import (
    PaymentGateway, Payment, PaymentTransaction,
    PaymentProvider, GatewayMode, PaymentType, PaymentStatus,
)
from app.models.event import Event, EventTicketType, Ticket, TicketStatus
from app.models.notification import Notification, UserNotification, NotificationType
from app.models.audit_log import AuditLog
from app.models.system_setting import SystemSetting

__all__ = [
    # Users & roles
    "User",
    "UserRoleAssignment",
    "RoleRequest",
    "RoleName",
    "RoleRequestStatus",
    "REQUESTABLE_ROLES",
    "UserMFA",
    "MFARecoveryCode",
    # Academics
    "Faculty",
    "Department",
    "Lecture",
    "Exam",
    "ExamType",
    "ExamStatus",
    "DAYS_OF_WEEK",
    "LEVELS",
    "SEMESTERS",
    # Links & content
    "CommunityLink",
    "CommunityLinkType",
    "CustomLink",
    "CustomLinkCategory",
    "BlogPost",
    "ContactMessage",
    "ContactMessageStatus",
    "CommunityMessage",
    # Wallet, ads, payments
    "Wallet",
    "WalletTransaction",
    "WalletTransactionType",
    "WalletTransactionSource",
    "AdSettings",
    "MessageAd",
    "AdType",
    "DURATION_MULTIPLIERS",
    "PaymentGateway",
    "Payment",
    "PaymentTransaction",
    "PaymentProvider",
    "GatewayMode",
    "PaymentType",
    "PaymentStatus",
    # Events & notifications
    "Event",
    "EventTicketType",
    "Ticket",
    "TicketStatus",
    "Notification",
    "UserNotification",
    "NotificationType",
    # Admin
    "AuditLog",
    "SystemSetting",
]
