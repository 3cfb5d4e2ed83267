"""
Product Model - Catalog Items and Stock Counters
"""
from decimal import Decimal
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, Text, CheckConstraint

from app.db.database import Base


class Product(Base):
    """Catalog item; stock is mutated only through InventoryService and admin edits"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
