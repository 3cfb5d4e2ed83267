"""
Payment Request API Routes
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.auth import get_current_user, require_admin
from app.api.routes.schemas import ActionResponse, PaymentRequestResponse
from app.core.validation import money_validator, sanitized_text_validator
from app.db.database import get_db
from app.db.models.user import User
from app.domain.services.payment_request_service import PaymentRequestService

router = APIRouter()


class PaymentRequestCreate(BaseModel):
    order_id: int
    amount: Decimal
    reason: str
    description: Optional[str] = ""

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v) -> Decimal:
        return money_validator(v)

    @field_validator("reason", "description")
    @classmethod
    def sanitize_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitized_text_validator(v, max_length=2000)


class PaymentRequestCreatedResponse(BaseModel):
    message: str
    payment_request: PaymentRequestResponse


class PaymentRequestAcceptedResponse(BaseModel):
    message: str
    payment_request: PaymentRequestResponse
    new_balance: float


@router.post(
    "/",
    response_model=PaymentRequestCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ask an order's owner for an extra payment (admin)",
)
async def create_payment_request(
    data: PaymentRequestCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    request = await PaymentRequestService(db).create(
        order_id=data.order_id,
        amount=data.amount,
        reason=data.reason,
        admin_id=admin.id,
        description=data.description or "",
    )
    return {"message": "Payment request sent successfully", "payment_request": request}


@router.get(
    "/user",
    response_model=List[PaymentRequestResponse],
    summary="Payment requests addressed to the caller",
)
async def list_my_payment_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentRequestService(db).list_for_user(current_user.id)


@router.get(
    "/all",
    response_model=List[PaymentRequestResponse],
    summary="All payment requests (admin)",
)
async def list_all_payment_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await PaymentRequestService(db).list_all(status_filter)


@router.post(
    "/{request_id}/accept",
    response_model=PaymentRequestAcceptedResponse,
    summary="Pay a request from the wallet",
)
async def accept_payment_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request, new_balance = await PaymentRequestService(db).accept(request_id, current_user.id)
    return {
        "message": "Payment accepted successfully",
        "payment_request": request,
        "new_balance": new_balance,
    }


@router.post(
    "/{request_id}/reject",
    response_model=PaymentRequestCreatedResponse,
    summary="Decline a request",
)
async def reject_payment_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request = await PaymentRequestService(db).reject(request_id, current_user.id)
    return {"message": "Payment request rejected", "payment_request": request}


@router.delete(
    "/{request_id}",
    response_model=ActionResponse,
    summary="Withdraw a pending request (admin)",
)
async def delete_payment_request(
    request_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await PaymentRequestService(db).delete(request_id)
    return {"success": True, "message": "Payment request deleted successfully"}
