"""
Order Model - Purchases, Line Items and Status History
"""
import enum
import secrets
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Numeric, ForeignKey, Text,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from app.db.database import Base


def generate_order_number() -> str:
    """Human-readable order reference, e.g. ORD-20261019-7F3A2C"""
    return f"ORD-{datetime.utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    WALLET = "wallet"
    CRYPTO = "crypto"


_order_status_enum = SQLEnum(
    OrderStatus, name="order_status", values_callable=lambda x: [e.value for e in x]
)


class Order(Base):
    """Purchase record. total_amount is frozen at creation."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, default=generate_order_number, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    total_amount = Column(Numeric(12, 2), nullable=False)

    # Shipping address
    shipping_full_name = Column(String(150), nullable=False)
    shipping_address = Column(String(500), nullable=False)
    shipping_city = Column(String(100), nullable=False)
    shipping_state = Column(String(100), nullable=False)
    shipping_zip_code = Column(String(20), nullable=False)
    shipping_country = Column(String(100), nullable=False)
    shipping_phone = Column(String(30), nullable=False)

    # Payment. Crypto fields are stored as supplied and never verified on-chain.
    payment_method = Column(
        SQLEnum(PaymentMethod, name="payment_method", values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    cryptocurrency = Column(String(20), nullable=True)
    wallet_address = Column(String(255), nullable=True)
    transaction_hash = Column(String(255), nullable=True)
    payment_verified = Column(Boolean, default=False, nullable=False)

    status = Column(
        _order_status_enum,
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    tracking_number = Column(String(64), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", lazy="selectin")
    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistory.id",
    )

    @property
    def shipping(self) -> dict[str, str]:
        return {
            "full_name": self.shipping_full_name,
            "address": self.shipping_address,
            "city": self.shipping_city,
            "state": self.shipping_state,
            "zip_code": self.shipping_zip_code,
            "country": self.shipping_country,
            "phone": self.shipping_phone,
        }


class OrderItem(Base):
    """Line item with name and unit price captured at order time"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    name = Column(String(200), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")


class OrderStatusHistory(Base):
    """Append-only status trail; rows are never updated"""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(_order_status_enum, nullable=False)
    note = Column(Text, nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="status_history")
