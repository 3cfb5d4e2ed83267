"""
Product Service - catalog administration

Admin price and stock edits. Stock changes made by checkouts go through
InventoryService instead.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ErrorCode, NotFoundException, ValidationException
from app.core.logging import get_logger
from app.core.validation import AmountValidator, TextSanitizer
from app.db.models.product import Product

logger = get_logger(__name__)


def _validate_price(price) -> Decimal:
    try:
        value = AmountValidator.to_money(price)
    except ValueError:
        raise ValidationException("Price must be a number", field="price")
    if value < 0:
        raise ValidationException("Price cannot be negative", field="price")
    return value


def _validate_stock(stock) -> int:
    if not isinstance(stock, int) or isinstance(stock, bool) or stock < 0:
        raise ValidationException("Stock must be a non-negative integer", field="stock")
    return stock


class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active(self) -> list[Product]:
        result = await self.db.execute(
            select(Product).where(Product.is_active.is_(True)).order_by(Product.id)
        )
        return list(result.scalars().all())

    async def get(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundException("Product", product_id, ErrorCode.PRODUCT_UNAVAILABLE)
        return product

    async def create(
        self,
        name: str,
        price: Decimal | float,
        stock: int = 0,
        description: Optional[str] = None,
    ) -> Product:
        name = TextSanitizer.sanitize(name, max_length=200)
        if not name:
            raise ValidationException("Product name is required", field="name")

        product = Product(
            name=name,
            description=TextSanitizer.sanitize(description, max_length=5000) or None,
            price=_validate_price(price),
            stock=_validate_stock(stock),
            is_active=True,
        )
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)

        logger.info(
            "Product created",
            extra_data={"product_id": product.id, "price": product.price, "stock": product.stock},
        )
        return product

    async def update(
        self,
        product_id: int,
        name: Optional[str] = None,
        price: Optional[Decimal | float] = None,
        stock: Optional[int] = None,
        is_active: Optional[bool] = None,
        description: Optional[str] = None,
    ) -> Product:
        """Partial update. Existing orders keep their frozen prices."""
        product = await self.get(product_id)
        changes = {}

        if name is not None:
            name = TextSanitizer.sanitize(name, max_length=200)
            if not name:
                raise ValidationException("Product name is required", field="name")
            product.name = name
            changes["name"] = name
        if price is not None:
            product.price = _validate_price(price)
            changes["price"] = product.price
        if stock is not None:
            product.stock = _validate_stock(stock)
            changes["stock"] = stock
        if is_active is not None:
            product.is_active = is_active
            changes["is_active"] = is_active
        if description is not None:
            product.description = TextSanitizer.sanitize(description, max_length=5000) or None

        await self.db.commit()
        await self.db.refresh(product)

        logger.info(
            "Product updated",
            extra_data={"product_id": product_id, "changes": changes},
        )
        return product
