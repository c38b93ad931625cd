"""
Wallet Service - balance changes and the transaction ledger

Handles:
- Wallet creation on first use
- Credits and debits (amounts in kobo, always positive)
- Ledger reconciliation

Every balance change writes its WalletTransaction in the same session, and
debits lock the wallet row first, so two concurrent debits can't both pass
the balance check.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app.core.exceptions import InsufficientFundsError, ValidationError
from app.core.logging_config import logger
from app.models.wallet import (
    Wallet,
    WalletTransaction,
    WalletTransactionType,
    WalletTransactionSource,
)


class WalletService:
    """Service for wallet balances and transactions"""

    async def get_wallet(self, db: AsyncSession, user_id: str, lock: bool = False) -> Wallet:
        """Get user's wallet, create it if it doesn't exist"""
        query = select(Wallet).where(Wallet.user_id == str(user_id))
        if lock:
            query = query.with_for_update()
        wallet = (await db.execute(query)).scalar_one_or_none()

        if not wallet:
            await self.create_wallet(db, user_id)
            wallet = (await db.execute(query)).scalar_one()

        return wallet

    async def create_wallet(self, db: AsyncSession, user_id: str) -> bool:
        """
        Insert an empty wallet unless one already exists.

        Two first requests can race here; the loser's insert is skipped by the
        unique user_id instead of failing. Returns True when a row was created.
        """
        dialect = db.get_bind().dialect.name
        values = {"user_id": str(user_id), "balance": 0, "total_credited": 0, "total_debited": 0}
        if dialect == "postgresql":
            stmt = pg_insert(Wallet).values(**values).on_conflict_do_nothing(index_elements=["user_id"])
        elif dialect == "sqlite":
            stmt = sqlite_insert(Wallet).values(**values).on_conflict_do_nothing(index_elements=["user_id"])
        else:
            exists = await db.scalar(select(Wallet.id).where(Wallet.user_id == str(user_id)))
            if exists:
                return False
            stmt = insert(Wallet).values(**values)

        result = await db.execute(stmt)
        created = bool(result.rowcount)
        if created:
            logger.info(f"[Wallet] Created wallet for user {user_id}")
        return created

    async def check_balance(self, db: AsyncSession, user_id: str, amount: int) -> bool:
        wallet = await self.get_wallet(db, user_id)
        return wallet.balance >= amount

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        source: WalletTransactionSource,
        description: str,
        reference: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> WalletTransaction:
        """
        Credit amount to user's wallet

        Args:
            amount: Amount in kobo, must be positive
            source: Where the money came from
            reference: Payment reference or other correlating id

        Returns:
            WalletTransaction record
        """
        if amount <= 0:
            raise ValidationError("Credit amount must be positive", field="amount")

        wallet = await self.get_wallet(db, user_id, lock=True)

        wallet.balance += amount
        wallet.total_credited += amount
        wallet.updated_at = datetime.utcnow()

        transaction = WalletTransaction(
            wallet_id=wallet.id,
            user_id=str(user_id),
            transaction_type=WalletTransactionType.CREDIT,
            source=source,
            amount=amount,
            balance_after=wallet.balance,
            description=description,
            reference=reference,
            extra_data=metadata,
        )
        db.add(transaction)
        await db.flush()

        logger.log_wallet_event(str(user_id), "credit", amount, wallet.balance, reference)
        return transaction

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        source: WalletTransactionSource,
        description: str,
        reference: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        keep_minimum: int = 0,
    ) -> WalletTransaction:
        """
        Debit amount from user's wallet

        Raises:
            InsufficientFundsError: balance would drop below ``keep_minimum``
        """
        if amount <= 0:
            raise ValidationError("Debit amount must be positive", field="amount")

        wallet = await self.get_wallet(db, user_id, lock=True)

        if wallet.balance - amount < keep_minimum:
            logger.warning(
                f"[Wallet] Insufficient balance for {user_id}: needs {amount + keep_minimum}, has {wallet.balance}"
            )
            raise InsufficientFundsError(required=amount + keep_minimum, available=wallet.balance)

        wallet.balance -= amount
        wallet.total_debited += amount
        wallet.updated_at = datetime.utcnow()

        transaction = WalletTransaction(
            wallet_id=wallet.id,
            user_id=str(user_id),
            transaction_type=WalletTransactionType.DEBIT,
            source=source,
            amount=amount,
            balance_after=wallet.balance,
            description=description,
            reference=reference,
            extra_data=metadata,
        )
        db.add(transaction)
        await db.flush()

        logger.log_wallet_event(str(user_id), "debit", amount, wallet.balance, reference)
        return transaction

    async def find_transaction_by_reference(
        self,
        db: AsyncSession,
        reference: str,
        transaction_type: WalletTransactionType = WalletTransactionType.CREDIT,
    ) -> Optional[WalletTransaction]:
        result = await db.execute(
            select(WalletTransaction).where(
                WalletTransaction.reference == reference,
                WalletTransaction.transaction_type == transaction_type,
            )
        )
        return result.scalars().first()

    def transactions_query(
        self,
        user_id: Optional[str] = None,
        transaction_type: Optional[WalletTransactionType] = None,
        source: Optional[WalletTransactionSource] = None,
    ):
        query = select(WalletTransaction)
        if user_id:
            query = query.where(WalletTransaction.user_id == str(user_id))
        if transaction_type:
            query = query.where(WalletTransaction.transaction_type == transaction_type)
        if source:
            query = query.where(WalletTransaction.source == source)
        return query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        transaction_type: Optional[WalletTransactionType] = None,
    ) -> List[WalletTransaction]:
        result = await db.execute(self.transactions_query(user_id, transaction_type))
        return list(result.scalars().all())

    async def ledger_totals(self, db: AsyncSession, user_id: str) -> Tuple[int, int]:
        """(sum of credits, sum of debits) from the transaction rows"""
        result = await db.execute(
            select(
                func.coalesce(func.sum(case(
                    (WalletTransaction.transaction_type == WalletTransactionType.CREDIT, WalletTransaction.amount),
                    else_=0,
                )), 0),
                func.coalesce(func.sum(case(
                    (WalletTransaction.transaction_type == WalletTransactionType.DEBIT, WalletTransaction.amount),
                    else_=0,
                )), 0),
            ).where(WalletTransaction.user_id == str(user_id))
        )
        credits, debits = result.one()
        return int(credits), int(debits)

    async def reconcile(self, db: AsyncSession, user_id: str) -> Dict[str, Any]:
        """Compare the stored balance with the ledger"""
        wallet = await self.get_wallet(db, user_id)
        credits, debits = await self.ledger_totals(db, user_id)
        expected = credits - debits
        consistent = expected == wallet.balance

        if not consistent:
            logger.error(
                f"[Wallet] Ledger mismatch for {user_id}: balance={wallet.balance} ledger={expected}"
            )

        return {
            "user_id": str(user_id),
            "balance": wallet.balance,
            "total_credits": credits,
            "total_debits": debits,
            "ledger_balance": expected,
            "difference": wallet.balance - expected,
            "consistent": consistent,
        }


# Singleton instance
wallet_service = WalletService()
