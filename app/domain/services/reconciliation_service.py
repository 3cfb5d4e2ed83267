"""
Reconciliation Service - rebuild a cached balance from the ledger
"""
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.logging import get_logger, log_async_operation
from app.db.models.user import User
from app.domain.services.ledger_service import LedgerService

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconciliationReport:
    user_id: int
    old_balance: Decimal
    new_balance: Decimal
    difference: Decimal
    transactions_processed: int

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "old_balance": str(self.old_balance),
            "new_balance": str(self.new_balance),
            "difference": str(self.difference),
            "transactions_processed": self.transactions_processed,
        }


class ReconciliationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.ledger = LedgerService(db)

    @log_async_operation("recalculate_balance")
    async def recalculate(self, user_id: int) -> ReconciliationReport:
        """
        Overwrite the cached balance with the ledger replay.

        Idempotent: a second run with no new entries reports difference 0.
        """
        result = await self.db.execute(
            select(User).where(User.id == user_id).with_for_update()
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundException("User", user_id)

        old_balance = Decimal(str(user.wallet_balance)).quantize(Decimal("0.01"))
        new_balance, count = await self.ledger.sum_completed(user_id)

        user.wallet_balance = new_balance
        await self.db.commit()

        report = ReconciliationReport(
            user_id=user_id,
            old_balance=old_balance,
            new_balance=new_balance,
            difference=new_balance - old_balance,
            transactions_processed=count,
        )

        log = logger.warning if report.difference else logger.info
        log(
            "Balance recalculated",
            extra_data=report.to_dict(),
        )
        return report
