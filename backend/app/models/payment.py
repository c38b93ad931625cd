from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Enum as SQLEnum, JSON, Index
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class PaymentProvider(str, enum.Enum):
    PAYSTACK = "paystack"
    FLUTTERWAVE = "flutterwave"
    KORAPAY = "korapay"
    DEMO = "demo"


class GatewayMode(str, enum.Enum):
    TEST = "test"
    LIVE = "live"


class PaymentType(str, enum.Enum):
    WALLET_FUNDING = "wallet_funding"
    EVENT_TICKET = "event_ticket"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESSFUL = "successful"
    FAILED = "failed"


class PaymentGateway(Base):
    """Credentials for one provider. Secrets are never serialized back to clients."""
    __tablename__ = "payment_gateways"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    provider = Column(SQLEnum(PaymentProvider), unique=True, nullable=False)

    public_key = Column(String(255), nullable=True)
    secret_key = Column(String(255), nullable=True)
    encryption_key = Column(String(255), nullable=True)
    merchant_id = Column(String(255), nullable=True)
    business_name = Column(String(255), nullable=True)

    mode = Column(SQLEnum(GatewayMode), default=GatewayMode.TEST, nullable=False)
    enabled = Column(Boolean, default=False, nullable=False)
    webhook_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PaymentGateway {self.provider} enabled={self.enabled}>"


class Payment(Base):
    """A checkout started through a provider; settles into a wallet credit or an event ticket"""
    __tablename__ = "payments"

    __table_args__ = (
        Index('ix_payments_user', 'user_id'),
        Index('ix_payments_status', 'payment_status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    payment_reference = Column(String(100), unique=True, nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Amount in kobo
    amount = Column(Integer, nullable=False)
    currency = Column(String(10), default="NGN", nullable=False)

    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)

    payment_type = Column(SQLEnum(PaymentType), default=PaymentType.WALLET_FUNDING, nullable=False)
    payment_method = Column(SQLEnum(PaymentProvider), nullable=False)
    payment_status = Column(SQLEnum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    # Provider-side identifiers
    transaction_id = Column(String(255), nullable=True)
    checkout_url = Column(Text, nullable=True)

    # Set when the wallet credit for this payment has been written
    wallet_transaction_id = Column(GUID, ForeignKey("wallet_transactions.id", ondelete="SET NULL"), nullable=True)

    failure_reason = Column(String(500), nullable=True)
    extra_data = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    paid_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Payment {self.payment_reference} {self.payment_status}>"


class PaymentTransaction(Base):
    """Raw provider event (webhook body, verify response) kept for audits"""
    __tablename__ = "payment_transactions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    payment_id = Column(GUID, ForeignKey("payments.id", ondelete="CASCADE"), nullable=True)
    payment_reference = Column(String(100), nullable=True, index=True)
    provider = Column(SQLEnum(PaymentProvider), nullable=False)
    event = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
