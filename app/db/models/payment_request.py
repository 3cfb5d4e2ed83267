"""
Payment Request Model - admin-proposed extra charge tied to an order
"""
import enum
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, ForeignKey, Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from app.db.database import Base


class PaymentRequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class PaymentRequest(Base):
    """Charge that the order owner must explicitly accept before any debit"""

    __tablename__ = "payment_requests"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    amount = Column(Numeric(12, 2), nullable=False)
    reason = Column(String(200), nullable=False)
    description = Column(Text, nullable=True, default="")

    status = Column(
        SQLEnum(PaymentRequestStatus, name="payment_request_status", values_callable=lambda x: [e.value for e in x]),
        default=PaymentRequestStatus.PENDING,
        nullable=False,
        index=True,
    )
    responded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", lazy="selectin")

    @property
    def order_number(self) -> str | None:
        return self.order.order_number if self.order is not None else None
