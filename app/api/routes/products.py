"""
Product API Routes
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.auth import require_admin
from app.api.routes.schemas import ProductResponse
from app.core.validation import AmountValidator, sanitized_text_validator
from app.db.database import get_db
from app.db.models.user import User
from app.domain.services.product_service import ProductService

router = APIRouter()


def _validate_price(v):
    if v is None:
        return None
    is_valid, error = AmountValidator.validate(v, min_value=Decimal("0.00"))
    if not is_valid:
        raise ValueError(error)
    return AmountValidator.to_money(v)


class ProductCreate(BaseModel):
    name: str
    price: Decimal
    stock: int = 0
    description: Optional[str] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Decimal) -> Decimal:
        return _validate_price(v)

    @field_validator("name", "description")
    @classmethod
    def sanitize_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitized_text_validator(v, max_length=5000)


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[Decimal] = None
    stock: Optional[int] = None
    is_active: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _validate_price(v)

    @field_validator("name", "description")
    @classmethod
    def sanitize_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitized_text_validator(v, max_length=5000)


@router.get(
    "/",
    response_model=List[ProductResponse],
    summary="List active products",
)
async def list_products(db: AsyncSession = Depends(get_db)):
    return await ProductService(db).list_active()


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get a product",
)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await ProductService(db).get(product_id)


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product (admin)",
)
async def create_product(
    data: ProductCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).create(
        name=data.name,
        price=data.price,
        stock=data.stock,
        description=data.description,
    )


@router.patch(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Edit price, stock or visibility (admin)",
)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).update(
        product_id,
        name=data.name,
        price=data.price,
        stock=data.stock,
        is_active=data.is_active,
        description=data.description,
    )
