"""
Order API Routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.auth import get_current_user, require_admin
from app.api.routes.schemas import OrderResponse
from app.core.validation import sanitized_text_validator
from app.db.database import get_db
from app.db.models.order import PaymentMethod
from app.db.models.user import User
from app.domain.services.inventory_service import LineRequest
from app.domain.services.order_service import OrderService
from app.domain.services.wallet_service import WalletService

router = APIRouter()


class OrderLine(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class ShippingAddressIn(BaseModel):
    """All fields are checked by the order service so errors carry the field name"""
    full_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    phone: str = ""


class OrderCreate(BaseModel):
    items: List[OrderLine]
    shipping_address: ShippingAddressIn
    payment_method: str
    cryptocurrency: Optional[str] = None
    wallet_address: Optional[str] = None
    transaction_hash: Optional[str] = None


class OrderUpdate(BaseModel):
    status: Optional[str] = None
    payment_verified: Optional[bool] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    status_note: Optional[str] = None

    @field_validator("notes", "status_note", "tracking_number")
    @classmethod
    def sanitize_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitized_text_validator(v, max_length=2000)


class OrderCreatedResponse(BaseModel):
    message: str
    order: OrderResponse
    wallet_balance: Optional[float] = None


class OrderActionResponse(BaseModel):
    message: str
    order: OrderResponse


@router.post(
    "/",
    response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description=(
        "Reserves stock for every line and, for wallet payments, debits the "
        "wallet in the same transaction. Nothing is kept if any step fails."
    ),
)
async def create_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_id = current_user.id
    order = await OrderService(db).create_order(
        user_id=user_id,
        items=[LineRequest(product_id=line.product_id, quantity=line.quantity) for line in data.items],
        shipping_address=data.shipping_address.model_dump(),
        payment_method=data.payment_method,
        cryptocurrency=data.cryptocurrency,
        wallet_address=data.wallet_address,
        transaction_hash=data.transaction_hash,
    )

    if order.payment_method == PaymentMethod.WALLET:
        balance = await WalletService(db).get_balance(user_id)
        return {
            "message": "Order created successfully with wallet payment",
            "order": order,
            "wallet_balance": balance,
        }
    return {"message": "Order created successfully", "order": order}


@router.get(
    "/",
    response_model=List[OrderResponse],
    summary="List the caller's orders",
)
async def list_my_orders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService(db).list_user_orders(current_user.id)


@router.get(
    "/admin/all",
    response_model=List[OrderResponse],
    summary="List all orders (admin)",
)
async def list_all_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService(db).list_all_orders(status_filter)


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get an order (owner or admin)",
)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService(db).get_order_for_viewer(order_id, current_user)


@router.put(
    "/{order_id}",
    response_model=OrderActionResponse,
    summary="Update order status, payment flag, notes or tracking (admin)",
)
async def update_order(
    order_id: int,
    data: OrderUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).update_order(
        order_id,
        actor_id=admin.id,
        status=data.status,
        payment_verified=data.payment_verified,
        notes=data.notes,
        tracking_number=data.tracking_number,
        status_note=data.status_note,
    )
    return {"message": "Order updated successfully", "order": order}


@router.post(
    "/{order_id}/cancel",
    response_model=OrderActionResponse,
    summary="Cancel a pending order (owner)",
)
async def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).cancel_order(order_id, actor_id=current_user.id)
    return {"message": "Order cancelled successfully", "order": order}
