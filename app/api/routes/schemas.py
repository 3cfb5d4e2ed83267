"""
Shared API response schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.db.models.order import OrderStatus, PaymentMethod
from app.db.models.payment_request import PaymentRequestStatus
from app.db.models.wallet_transaction import DepositMethod, TransactionStatus, TransactionType


class ActionResponse(BaseModel):
    success: bool
    message: str


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    stock: int
    is_active: bool

    model_config = {"from_attributes": True}


class ShippingAddress(BaseModel):
    full_name: str
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    phone: str


class OrderItemResponse(BaseModel):
    product_id: int
    name: str
    unit_price: float
    quantity: int

    model_config = {"from_attributes": True}


class StatusHistoryResponse(BaseModel):
    status: OrderStatus
    note: Optional[str] = None
    updated_by: Optional[int] = None
    timestamp: datetime

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: int
    items: List[OrderItemResponse]
    total_amount: float
    shipping: ShippingAddress
    payment_method: PaymentMethod
    cryptocurrency: Optional[str] = None
    wallet_address: Optional[str] = None
    transaction_hash: Optional[str] = None
    payment_verified: bool
    status: OrderStatus
    status_history: List[StatusHistoryResponse]
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    order_id: Optional[int] = None
    type: TransactionType
    amount: float
    status: TransactionStatus
    description: str
    deposit_method: Optional[DepositMethod] = None
    gift_card_type: Optional[str] = None
    gift_card_image: Optional[str] = None
    gift_card_code: Optional[str] = None
    admin_notes: Optional[str] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentRequestResponse(BaseModel):
    id: int
    order_id: int
    order_number: Optional[str] = None
    user_id: int
    created_by: int
    amount: float
    reason: str
    description: Optional[str] = None
    status: PaymentRequestStatus
    responded_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
