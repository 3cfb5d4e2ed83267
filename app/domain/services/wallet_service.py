"""
Wallet Service - cached balance, debits, credits and deposit settlement

The cached users.wallet_balance changes only at the moment a ledger entry
becomes completed, in the same unit of work as the ledger write.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ErrorCode,
    InsufficientFundsError,
    InvalidAmountError,
    NotFoundException,
    ValidationException,
    WalletException,
)
from app.core.logging import get_logger, log_async_operation
from app.core.validation import AmountValidator, TextSanitizer
from app.db.models.user import User, UserRole
from app.db.models.wallet_transaction import (
    DepositMethod,
    TransactionStatus,
    TransactionType,
    WalletTransaction,
)
from app.domain.services.ledger_service import DepositMeta, LedgerService
from app.domain.services.store_settings_service import StoreSettingsService

logger = get_logger(__name__)


class WalletService:
    """Service for managing user wallets"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerService(db)

    async def get_user(self, user_id: int, for_update: bool = False) -> User:
        query = select(User).where(User.id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundException("User", user_id)
        return user

    async def get_balance(self, user_id: int) -> Decimal:
        """Cached balance; may lag the ledger until reconciliation runs"""
        user = await self.get_user(user_id)
        return Decimal(str(user.wallet_balance))

    async def get_wallet(
        self, user_id: int, limit: Optional[int] = None
    ) -> tuple[Decimal, list[WalletTransaction]]:
        """Balance plus the most recent ledger entries"""
        balance = await self.get_balance(user_id)
        history = await self.ledger.list_for_user(
            user_id, limit=limit or settings.WALLET_HISTORY_LIMIT
        )
        return balance, history

    async def debit(
        self,
        user_id: int,
        amount: Decimal | float,
        description: str,
        order_id: Optional[int] = None,
    ) -> WalletTransaction:
        """
        Take money out of the wallet.

        Appends a payment entry, settles it completed and lowers the cached
        balance. Refusal writes nothing. Should be called within an atomic
        transaction; the caller commits.

        Raises:
            InsufficientFundsError: cached balance below amount
        """
        money = AmountValidator.to_money(amount)
        if money <= 0:
            raise InvalidAmountError(amount)

        user = await self.get_user(user_id, for_update=True)
        balance = Decimal(str(user.wallet_balance))

        if balance < money:
            logger.warning(
                "Debit refused, insufficient funds",
                extra_data={"user_id": user_id, "required": money, "available": balance},
            )
            raise InsufficientFundsError(user_id, required=money, available=balance)

        entry = await self.ledger.append(
            user_id=user_id,
            type=TransactionType.PAYMENT,
            amount=money,
            description=description,
            order_id=order_id,
        )
        await self.ledger.settle(entry.id, TransactionStatus.COMPLETED)
        user.wallet_balance = balance - money
        await self.db.flush()

        logger.info(
            "Wallet debited",
            extra_data={
                "user_id": user_id,
                "transaction_id": entry.id,
                "amount": money,
                "balance_after": user.wallet_balance,
            },
        )
        return entry

    async def credit(
        self,
        user_id: int,
        amount: Decimal | float,
        description: str,
        order_id: Optional[int] = None,
    ) -> WalletTransaction:
        """Completed refund entry plus balance increment. Caller commits."""
        user = await self.get_user(user_id, for_update=True)
        entry = await self.ledger.append(
            user_id=user_id,
            type=TransactionType.REFUND,
            amount=amount,
            description=description,
            order_id=order_id,
            status=TransactionStatus.COMPLETED,
        )
        user.wallet_balance = Decimal(str(user.wallet_balance)) + entry.amount
        await self.db.flush()

        logger.info(
            "Wallet credited",
            extra_data={
                "user_id": user_id,
                "transaction_id": entry.id,
                "amount": entry.amount,
                "balance_after": user.wallet_balance,
            },
        )
        return entry

    @log_async_operation("request_deposit")
    async def request_deposit(
        self,
        user_id: int,
        amount: Decimal | float,
        method: DepositMethod = DepositMethod.CASH,
        gift_card_type: Optional[str] = None,
        gift_card_image: Optional[str] = None,
        gift_card_code: Optional[str] = None,
    ) -> WalletTransaction:
        """
        Create a pending deposit awaiting admin confirmation.

        Raises:
            InvalidAmountError: below MIN_DEPOSIT_AMOUNT
            ValidationException: gift-card brand not allowed or proof image missing
        """
        try:
            money = AmountValidator.to_money(amount)
        except ValueError:
            raise InvalidAmountError(amount, minimum=settings.MIN_DEPOSIT_AMOUNT)
        if money < settings.MIN_DEPOSIT_AMOUNT:
            raise InvalidAmountError(amount, minimum=settings.MIN_DEPOSIT_AMOUNT)

        await self.get_user(user_id)

        if method == DepositMethod.GIFTCARD:
            if not gift_card_type:
                raise ValidationException("Gift card type is required", field="gift_card_type")
            allowed = await StoreSettingsService(self.db).get_gift_card_types()
            if gift_card_type not in allowed:
                raise ValidationException(
                    "Invalid gift card type",
                    field="gift_card_type",
                    details={"allowed": allowed},
                )
            if not gift_card_image or not gift_card_image.strip():
                raise ValidationException("Gift card image is required", field="gift_card_image")
            meta = DepositMeta(
                method=DepositMethod.GIFTCARD,
                gift_card_type=gift_card_type,
                gift_card_image=gift_card_image.strip(),
                gift_card_code=TextSanitizer.sanitize(gift_card_code, max_length=100),
            )
            description = f"{gift_card_type} gift card deposit of ${money:.2f}"
        else:
            meta = DepositMeta(method=DepositMethod.CASH)
            description = f"Deposit request of ${money:.2f}"

        entry = await self.ledger.append(
            user_id=user_id,
            type=TransactionType.DEPOSIT,
            amount=money,
            description=description,
            deposit_meta=meta,
        )
        await self.db.commit()
        return entry

    async def _pending_deposit(self, transaction_id: int) -> WalletTransaction:
        entry = await self.ledger.get_or_404(transaction_id, for_update=True)
        if entry.type != TransactionType.DEPOSIT:
            raise WalletException(
                f"Transaction {entry.id} is not a deposit",
                error_code=ErrorCode.INVALID_TRANSACTION_TYPE,
                user_id=entry.user_id,
                details={"type": entry.type.value},
            )
        return entry

    @log_async_operation("confirm_deposit")
    async def confirm_deposit(
        self,
        transaction_id: int,
        admin_id: int,
        admin_notes: Optional[str] = None,
    ) -> tuple[WalletTransaction, Decimal]:
        """
        Settle a pending deposit as completed and credit the balance.

        Returns:
            (transaction, new balance)
        """
        entry = await self._pending_deposit(transaction_id)
        entry = await self.ledger.settle(
            entry.id,
            TransactionStatus.COMPLETED,
            processed_by=admin_id,
            admin_notes=admin_notes,
        )

        user = await self.get_user(entry.user_id, for_update=True)
        user.wallet_balance = Decimal(str(user.wallet_balance)) + Decimal(str(entry.amount))
        new_balance = user.wallet_balance
        await self.db.commit()

        logger.info(
            "Deposit confirmed",
            extra_data={
                "transaction_id": entry.id,
                "user_id": entry.user_id,
                "amount": entry.amount,
                "admin_id": admin_id,
                "balance_after": new_balance,
            },
        )
        return entry, new_balance

    @log_async_operation("reject_deposit")
    async def reject_deposit(
        self,
        transaction_id: int,
        admin_id: int,
        admin_notes: Optional[str] = None,
    ) -> WalletTransaction:
        """Settle a pending deposit as failed. Balance is untouched."""
        entry = await self._pending_deposit(transaction_id)
        entry = await self.ledger.settle(
            entry.id,
            TransactionStatus.FAILED,
            processed_by=admin_id,
            admin_notes=admin_notes,
        )
        await self.db.commit()

        logger.info(
            "Deposit rejected",
            extra_data={"transaction_id": entry.id, "user_id": entry.user_id, "admin_id": admin_id},
        )
        return entry

    async def list_pending_deposits(self) -> list[WalletTransaction]:
        return await self.ledger.list_all(
            status=TransactionStatus.PENDING, type=TransactionType.DEPOSIT
        )

    async def list_users_balances(self) -> list[User]:
        """Customers ordered by cached balance, highest first"""
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.USER)
            .order_by(User.wallet_balance.desc(), User.id)
        )
        return list(result.scalars().all())
