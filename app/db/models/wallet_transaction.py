"""
Wallet Transaction Model - Immutable Ledger of Balance-Affecting Events
"""
import enum
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, ForeignKey, Text,
    Enum as SQLEnum, CheckConstraint,
)

from app.db.database import Base


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    PAYMENT = "payment"
    REFUND = "refund"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_TRANSACTION_STATUSES = frozenset({TransactionStatus.COMPLETED, TransactionStatus.FAILED})

# Types that add to the balance when completed; PAYMENT subtracts
CREDIT_TRANSACTION_TYPES = frozenset({TransactionType.DEPOSIT, TransactionType.REFUND})


class DepositMethod(str, enum.Enum):
    CASH = "cash"
    GIFTCARD = "giftcard"


class WalletTransaction(Base):
    """Ledger entry. amount is always positive; type carries the direction."""

    __tablename__ = "wallet_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)

    type = Column(
        SQLEnum(TransactionType, name="transaction_type", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        SQLEnum(TransactionStatus, name="transaction_status", values_callable=lambda x: [e.value for e in x]),
        default=TransactionStatus.PENDING,
        nullable=False,
        index=True,
    )
    description = Column(String(500), nullable=False)

    # Deposit metadata
    deposit_method = Column(
        SQLEnum(DepositMethod, name="deposit_method", values_callable=lambda x: [e.value for e in x]),
        nullable=True,
    )
    gift_card_type = Column(String(50), nullable=True)
    gift_card_image = Column(String(500), nullable=True)  # proof image reference
    gift_card_code = Column(String(100), nullable=True)

    admin_notes = Column(Text, nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_wallet_transactions_amount_positive"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRANSACTION_STATUSES

    @property
    def signed_amount(self):
        """Effect on the balance once completed"""
        return self.amount if self.type in CREDIT_TRANSACTION_TYPES else -self.amount
