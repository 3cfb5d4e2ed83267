"""
Ledger Service - append/settle/query for wallet_transactions

The ledger is the source of truth for balances. Entries are created pending
(or completed for synchronous settlement) and move to a terminal status
exactly once. Nothing here commits: callers own the unit of work.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AlreadyTerminalError,
    ErrorCode,
    InvalidAmountError,
    NotFoundException,
    ValidationException,
)
from app.core.logging import get_logger
from app.core.validation import AmountValidator
from app.db.models.wallet_transaction import (
    DepositMethod,
    TransactionStatus,
    TransactionType,
    WalletTransaction,
)

logger = get_logger(__name__)


@dataclass
class DepositMeta:
    """Deposit-method metadata stored on a deposit entry"""
    method: DepositMethod = DepositMethod.CASH
    gift_card_type: Optional[str] = None
    gift_card_image: Optional[str] = None
    gift_card_code: Optional[str] = None


class LedgerService:
    """Append-mostly store of balance-affecting events"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        user_id: int,
        type: TransactionType,
        amount: Decimal | float,
        description: str,
        order_id: Optional[int] = None,
        deposit_meta: Optional[DepositMeta] = None,
        status: TransactionStatus = TransactionStatus.PENDING,
    ) -> WalletTransaction:
        """
        Create a ledger entry.

        Raises:
            InvalidAmountError: amount is not > 0
            ValidationException: status is failed (entries are never born failed)
        """
        try:
            money = AmountValidator.to_money(amount)
        except ValueError:
            raise InvalidAmountError(amount)
        if money <= 0:
            raise InvalidAmountError(amount)

        if status == TransactionStatus.FAILED:
            raise ValidationException("A ledger entry cannot be created as failed", field="status")

        entry = WalletTransaction(
            user_id=user_id,
            type=type,
            amount=money,
            status=status,
            description=description,
            order_id=order_id,
        )
        if deposit_meta is not None:
            entry.deposit_method = deposit_meta.method
            entry.gift_card_type = deposit_meta.gift_card_type
            entry.gift_card_image = deposit_meta.gift_card_image
            entry.gift_card_code = deposit_meta.gift_card_code
        if status == TransactionStatus.COMPLETED:
            entry.processed_at = datetime.utcnow()

        self.db.add(entry)
        await self.db.flush()

        logger.info(
            "Ledger entry appended",
            extra_data={
                "transaction_id": entry.id,
                "user_id": user_id,
                "type": type.value,
                "amount": money,
                "status": status.value,
                "order_id": order_id,
            },
        )
        return entry

    async def get(self, transaction_id: int, for_update: bool = False) -> Optional[WalletTransaction]:
        query = select(WalletTransaction).where(WalletTransaction.id == transaction_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_404(self, transaction_id: int, for_update: bool = False) -> WalletTransaction:
        entry = await self.get(transaction_id, for_update=for_update)
        if entry is None:
            raise NotFoundException("Transaction", transaction_id, ErrorCode.TRANSACTION_NOT_FOUND)
        return entry

    async def settle(
        self,
        transaction_id: int,
        outcome: TransactionStatus,
        processed_by: Optional[int] = None,
        admin_notes: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Move a pending entry to completed or failed.

        Settling does not touch the cached balance; WalletService applies the
        effect in the same unit of work.

        Raises:
            NotFoundException: unknown id
            AlreadyTerminalError: entry is already completed or failed
        """
        if outcome not in (TransactionStatus.COMPLETED, TransactionStatus.FAILED):
            raise ValidationException(
                f"Settlement outcome must be completed or failed, got {outcome.value}",
                field="outcome",
            )

        entry = await self.get_or_404(transaction_id, for_update=True)
        if entry.is_terminal:
            raise AlreadyTerminalError("Transaction", entry.id, entry.status.value)

        entry.status = outcome
        entry.processed_at = datetime.utcnow()
        if processed_by is not None:
            entry.processed_by = processed_by
        if admin_notes:
            entry.admin_notes = admin_notes
        await self.db.flush()

        logger.info(
            "Ledger entry settled",
            extra_data={
                "transaction_id": entry.id,
                "user_id": entry.user_id,
                "type": entry.type.value,
                "amount": entry.amount,
                "outcome": outcome.value,
            },
        )
        return entry

    async def list_for_user(
        self,
        user_id: int,
        status: Optional[TransactionStatus] = None,
        type: Optional[TransactionType] = None,
        limit: Optional[int] = None,
    ) -> list[WalletTransaction]:
        """Entries for one user, newest first"""
        query = select(WalletTransaction).where(WalletTransaction.user_id == user_id)
        return await self._list(query, status, type, limit)

    async def list_all(
        self,
        status: Optional[TransactionStatus] = None,
        type: Optional[TransactionType] = None,
        limit: Optional[int] = None,
    ) -> list[WalletTransaction]:
        """Entries across all users, newest first (admin views)"""
        return await self._list(select(WalletTransaction), status, type, limit)

    async def _list(self, query, status, type, limit) -> list[WalletTransaction]:
        if status is not None:
            query = query.where(WalletTransaction.status == status)
        if type is not None:
            query = query.where(WalletTransaction.type == type)
        query = query.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def sum_completed(self, user_id: int) -> tuple[Decimal, int]:
        """
        Replay completed entries for a user.

        Returns:
            (deposits + refunds - payments, number of entries replayed)
        """
        result = await self.db.execute(
            select(WalletTransaction)
            .where(WalletTransaction.user_id == user_id)
            .where(WalletTransaction.status == TransactionStatus.COMPLETED)
        )
        entries = result.scalars().all()

        balance = sum(
            (AmountValidator.to_money(entry.signed_amount) for entry in entries),
            Decimal("0.00"),
        )
        return balance, len(entries)
