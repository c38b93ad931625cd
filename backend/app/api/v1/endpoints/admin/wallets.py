"""
Admin wallet management: balances, reconciliation and manual adjustments.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.api.v1.endpoints.wallet import transaction_serializer
from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import logger
from app.models import (
    User, Wallet, WalletTransactionType, WalletTransactionSource,
)
from app.modules.auth.dependencies import get_current_admin
from app.schemas.wallet import (
    WalletResponse, WalletTransactionResponse, WalletAdjustRequest, ReconcileResponse,
)
from app.services.audit_service import log_action
from app.services.user_service import get_user
from app.services.wallet_service import wallet_service
from app.utils.pagination import paginate

router = APIRouter()
transactions_router = APIRouter()


def wallet_serializer(wallet: Wallet) -> dict:
    response = WalletResponse.model_validate(wallet)
    response.currency = settings.CURRENCY
    return response.model_dump()


@router.get("")
async def list_wallets(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    min_balance: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Wallets ordered by balance, highest first"""
    query = select(Wallet)
    if min_balance is not None:
        query = query.where(Wallet.balance >= min_balance)
    query = query.order_by(Wallet.balance.desc(), Wallet.id)
    return await paginate(db, query, page, page_size, serializer=wallet_serializer)


@router.get("/{user_id}", response_model=WalletResponse)
async def get_user_wallet(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    await get_user(db, user_id)
    wallet = await wallet_service.get_wallet(db, user_id)
    await db.commit()
    return wallet_serializer(wallet)


@router.get("/{user_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_wallet(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Compare the stored balance with the sum of the user's transactions"""
    await get_user(db, user_id)
    return await wallet_service.reconcile(db, user_id)


@router.post("/{user_id}/adjust", response_model=WalletTransactionResponse)
async def adjust_wallet(
    user_id: str,
    data: WalletAdjustRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Manual credit or debit; debits cannot take the balance below zero"""
    user = await get_user(db, user_id)
    description = f"Admin adjustment: {data.reason}"
    metadata = {"admin_id": current_admin.id, "reason": data.reason}

    if data.transaction_type == WalletTransactionType.CREDIT:
        transaction = await wallet_service.credit(
            db, user.id, data.amount, WalletTransactionSource.ADMIN_CREDIT, description, metadata=metadata,
        )
    else:
        transaction = await wallet_service.debit(
            db, user.id, data.amount, WalletTransactionSource.ADMIN_DEBIT, description, metadata=metadata,
        )

    await log_action(db, current_admin.id, "wallet_adjusted", "user", user.id,
                     details={"type": data.transaction_type.value, "amount": data.amount,
                              "reason": data.reason, "balance_after": transaction.balance_after},
                     request=request)
    await db.commit()
    await db.refresh(transaction)

    logger.info(
        f"[Wallet] {current_admin.email} {data.transaction_type.value} {data.amount} kobo for {user.email}"
    )
    return transaction


@transactions_router.get("")
async def list_all_transactions(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user_id: Optional[str] = None,
    type: Optional[WalletTransactionType] = None,
    source: Optional[WalletTransactionSource] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = wallet_service.transactions_query(user_id, type, source)
    return await paginate(db, query, page, page_size, serializer=transaction_serializer)
