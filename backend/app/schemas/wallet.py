from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime

from app.models.wallet import WalletTransactionType, WalletTransactionSource


class WalletResponse(BaseModel):
    id: str
    user_id: str
    balance: int = Field(..., description="Balance in kobo")
    total_credited: int
    total_debited: int
    currency: str = "NGN"
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WalletTransactionResponse(BaseModel):
    id: str
    user_id: str
    transaction_type: WalletTransactionType
    source: WalletTransactionSource
    amount: int
    balance_after: int
    description: Optional[str] = None
    reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="extra_data")
    created_at: datetime

    class Config:
        from_attributes = True
        populate_by_name = True


class WalletAdjustRequest(BaseModel):
    """Admin credit or debit with a mandatory reason"""
    transaction_type: WalletTransactionType
    amount: int = Field(..., gt=0, description="Amount in kobo")
    reason: str = Field(..., min_length=3, max_length=500)


class ReconcileResponse(BaseModel):
    user_id: str
    balance: int
    total_credits: int
    total_debits: int
    ledger_balance: int
    difference: int
    consistent: bool
