from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import settings
from app.core.database import get_db
from app.models.user import User
from app.models.wallet import WalletTransaction, WalletTransactionType, WalletTransactionSource
from app.modules.auth.dependencies import get_current_user
from app.schemas.wallet import WalletResponse, WalletTransactionResponse
from app.services.wallet_service import wallet_service
from app.utils.csv_export import csv_response
from app.utils.pagination import paginate

router = APIRouter()

TRANSACTION_CSV_HEADER = [
    "Date", "Type", "Source", "Amount (kobo)", "Balance After (kobo)", "Description", "Reference",
]


def transaction_serializer(txn: WalletTransaction) -> dict:
    return WalletTransactionResponse.model_validate(txn).model_dump()


def transaction_csv_row(txn: WalletTransaction) -> list:
    return [
        txn.created_at, txn.transaction_type, txn.source, txn.amount,
        txn.balance_after, txn.description, txn.reference,
    ]


@router.get("", response_model=WalletResponse)
async def get_wallet(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Caller's wallet, created on first access"""
    wallet = await wallet_service.get_wallet(db, current_user.id)
    await db.commit()
    response = WalletResponse.model_validate(wallet)
    response.currency = settings.CURRENCY
    return response


@router.get("/transactions")
async def list_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    type: Optional[WalletTransactionType] = None,
    source: Optional[WalletTransactionSource] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest first"""
    query = wallet_service.transactions_query(current_user.id, type, source)
    return await paginate(db, query, page, page_size, serializer=transaction_serializer)


@router.get("/transactions/export")
async def export_transactions(
    type: Optional[WalletTransactionType] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    transactions = await wallet_service.list_transactions(db, current_user.id, type)
    return csv_response(
        "wallet-transactions.csv",
        TRANSACTION_CSV_HEADER,
        [transaction_csv_row(txn) for txn in transactions],
    )
