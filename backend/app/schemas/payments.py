from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.core.security import mask_secret
from app.models.payment import GatewayMode, PaymentProvider, PaymentStatus, PaymentType


class PaymentInitRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in kobo")
    provider: PaymentProvider = PaymentProvider.PAYSTACK
    payment_type: PaymentType = PaymentType.WALLET_FUNDING
    callback_url: Optional[str] = None


class PaymentInitResponse(BaseModel):
    reference: str
    payment_url: Optional[str] = None
    payment_id: str
    provider: PaymentProvider
    amount: int


class PaymentVerifyRequest(BaseModel):
    reference: str = Field(..., min_length=5, max_length=100)


class PaymentResponse(BaseModel):
    id: str
    payment_reference: str
    amount: int
    currency: str
    email: str
    payment_type: PaymentType
    payment_method: PaymentProvider
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    checkout_url: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentVerifyResponse(BaseModel):
    status: PaymentStatus
    already_processed: bool
    payment: PaymentResponse
    wallet_balance: Optional[int] = None
    ticket_code: Optional[str] = None


class PublicGatewayResponse(BaseModel):
    provider: PaymentProvider
    business_name: Optional[str] = None
    mode: str
    public_key: Optional[str] = None


# ============================================
# Admin gateway management
# ============================================

class PaymentGatewayUpsert(BaseModel):
    """Blank secret fields leave the stored value unchanged"""
    public_key: Optional[str] = Field(None, max_length=255)
    secret_key: Optional[str] = Field(None, max_length=255)
    encryption_key: Optional[str] = Field(None, max_length=255)
    merchant_id: Optional[str] = Field(None, max_length=255)
    business_name: Optional[str] = Field(None, max_length=255)
    mode: Optional[GatewayMode] = None
    enabled: Optional[bool] = None
    webhook_url: Optional[str] = None


class PaymentGatewayResponse(BaseModel):
    id: str
    provider: PaymentProvider
    public_key: Optional[str] = None
    secret_key: Optional[str] = None
    encryption_key: Optional[str] = None
    merchant_id: Optional[str] = None
    business_name: Optional[str] = None
    mode: GatewayMode
    enabled: bool
    webhook_url: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def masked(cls, gateway) -> "PaymentGatewayResponse":
        return cls(
            id=gateway.id,
            provider=gateway.provider,
            public_key=gateway.public_key,
            secret_key=mask_secret(gateway.secret_key),
            encryption_key=mask_secret(gateway.encryption_key),
            merchant_id=gateway.merchant_id,
            business_name=gateway.business_name,
            mode=gateway.mode,
            enabled=gateway.enabled,
            webhook_url=gateway.webhook_url,
            updated_at=gateway.updated_at,
        )
