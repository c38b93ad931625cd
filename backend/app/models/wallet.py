"""
Wallet Models

Every balance change is a WalletTransaction row written in the same
database transaction as the balance update, so the balance always equals
the sum of credits minus the sum of debits.
"""

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SQLEnum, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class WalletTransactionType(str, enum.Enum):
    CREDIT = "credit"
    DEBIT = "debit"


class WalletTransactionSource(str, enum.Enum):
    FUNDING = "funding"             # Payment gateway top-up
    AD_PURCHASE = "ad_purchase"     # Ad creation or renewal
    TICKET_PURCHASE = "ticket_purchase"
    ADMIN_CREDIT = "admin_credit"
    ADMIN_DEBIT = "admin_debit"
    REFUND = "refund"


class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    # One wallet per user
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Balance in kobo (e.g., 10000 = ₦100)
    balance = Column(Integer, default=0, nullable=False)

    # Lifetime stats (kobo)
    total_credited = Column(Integer, default=0, nullable=False)
    total_debited = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    transactions = relationship("WalletTransaction", back_populates="wallet", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Wallet {self.user_id}: ₦{self.balance/100:.2f}>"

    @property
    def balance_naira(self) -> float:
        return self.balance / 100


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    __table_args__ = (
        Index('ix_wallet_transactions_wallet', 'wallet_id'),
        Index('ix_wallet_transactions_user', 'user_id'),
        Index('ix_wallet_transactions_reference', 'reference'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    wallet_id = Column(GUID, ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    transaction_type = Column(SQLEnum(WalletTransactionType), nullable=False)
    source = Column(SQLEnum(WalletTransactionSource), nullable=False)

    # Amount in kobo (always positive, type determines direction)
    amount = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)

    description = Column(String(500), nullable=True)

    # Payment reference, AD_<id>, admin adjustment id...
    reference = Column(String(100), nullable=True)
    extra_data = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    wallet = relationship("Wallet", back_populates="transactions")

    def __repr__(self):
        return f"<WalletTransaction {self.transaction_type}: ₦{self.amount/100:.2f}>"

    @property
    def signed_amount(self) -> int:
        return self.amount if self.transaction_type == WalletTransactionType.CREDIT else -self.amount
