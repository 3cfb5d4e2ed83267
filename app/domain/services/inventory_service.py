"""
Inventory Service - all-or-nothing stock reservation

reserve() checks every line before decrementing any of them, so a batch
either fully succeeds or leaves stock untouched. Product rows are locked
(SELECT ... FOR UPDATE) so the check and the decrement cannot interleave with
another checkout on PostgreSQL. No commits here: the order flow owns the
unit of work.
"""
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ErrorCode,
    InsufficientStockError,
    NotFoundException,
    ValidationException,
)
from app.core.logging import get_logger
from app.db.models.product import Product

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineRequest:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class ReservedLine:
    """Frozen snapshot of a reserved line, used for order totals"""
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


def _aggregate(items: Iterable[LineRequest]) -> "OrderedDict[int, int]":
    """Merge duplicate product lines, keeping first-seen order"""
    merged: OrderedDict[int, int] = OrderedDict()
    for item in items:
        if not isinstance(item.quantity, int) or isinstance(item.quantity, bool) or item.quantity < 1:
            raise ValidationException(
                f"Quantity for product {item.product_id} must be a positive integer",
                field="quantity",
            )
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return merged


class InventoryService:
    """Per-product stock counter with reserve/release"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _lock_products(self, product_ids: list[int]) -> dict[int, Product]:
        # נעילה לפי סדר id, כך ששתי הזמנות על אותם מוצרים לא ייתקעו זו בזו
        result = await self.db.execute(
            select(Product)
            .where(Product.id.in_(product_ids))
            .order_by(Product.id)
            .with_for_update()
        )
        return {p.id: p for p in result.scalars().all()}

    async def reserve(self, items: Iterable[LineRequest]) -> list[ReservedLine]:
        """
        Reserve stock for every line or for none.

        Raises:
            ValidationException: empty batch or non-positive quantity
            NotFoundException: unknown or inactive product
            InsufficientStockError: first line whose stock is short
        """
        items = list(items)
        if not items:
            raise ValidationException("Order must contain at least one item", field="items")

        requested = _aggregate(items)
        products = await self._lock_products(list(requested))

        # שלב בדיקה: שום דבר לא משתנה עד שכל השורות עוברות
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None or not product.is_active:
                raise NotFoundException("Product", product_id, ErrorCode.PRODUCT_UNAVAILABLE)
            if product.stock < quantity:
                logger.warning(
                    "Reservation refused, insufficient stock",
                    extra_data={
                        "product_id": product_id,
                        "requested": quantity,
                        "available": product.stock,
                    },
                )
                raise InsufficientStockError(product_id, product.name, quantity, product.stock)

        for product_id, quantity in requested.items():
            products[product_id].stock -= quantity
        await self.db.flush()

        # One reserved line per requested line, in request order
        reserved = [
            ReservedLine(
                product_id=item.product_id,
                name=products[item.product_id].name,
                unit_price=Decimal(str(products[item.product_id].price)),
                quantity=item.quantity,
            )
            for item in items
        ]

        logger.info(
            "Stock reserved",
            extra_data={"lines": {pid: qty for pid, qty in requested.items()}},
        )
        return reserved

    async def release(self, items: Iterable[LineRequest]) -> None:
        """Give stock back. Call exactly once per reservation being undone."""
        requested = _aggregate(items)
        if not requested:
            return

        products = await self._lock_products(list(requested))
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                logger.warning(
                    "Stock release skipped, product no longer exists",
                    extra_data={"product_id": product_id, "quantity": quantity},
                )
                continue
            product.stock += quantity
        await self.db.flush()

        logger.info(
            "Stock released",
            extra_data={"lines": {pid: qty for pid, qty in requested.items()}},
        )
