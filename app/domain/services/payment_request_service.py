"""
Payment Request Service - admin-initiated charges the customer accepts or rejects

No money moves until the target user accepts. Acceptance debits the wallet
through WalletService under the same per-user lock as wallet checkout.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AlreadyTerminalError,
    AppException,
    ErrorCode,
    ForbiddenError,
    InvalidAmountError,
    NotFoundException,
    ValidationException,
)
from app.core.locks import wallet_lock
from app.core.logging import get_logger, log_async_operation
from app.core.validation import AmountValidator, TextSanitizer
from app.db.models.order import Order
from app.db.models.payment_request import PaymentRequest, PaymentRequestStatus
from app.domain.services.wallet_service import WalletService

logger = get_logger(__name__)


class PaymentRequestService:
    """Create, answer and list payment requests"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.wallet = WalletService(db)

    async def get(self, request_id: int, for_update: bool = False) -> PaymentRequest:
        query = (
            select(PaymentRequest)
            .where(PaymentRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundException("Payment request", request_id, ErrorCode.PAYMENT_REQUEST_NOT_FOUND)
        return request

    async def _get_pending_for_target(self, request_id: int, user_id: int) -> PaymentRequest:
        request = await self.get(request_id, for_update=True)
        if request.user_id != user_id:
            raise ForbiddenError()
        if request.status != PaymentRequestStatus.PENDING:
            raise AlreadyTerminalError("Payment request", request.id, request.status.value)
        return request

    @log_async_operation("create_payment_request")
    async def create(
        self,
        order_id: int,
        amount: Decimal | float,
        reason: str,
        admin_id: int,
        description: str = "",
    ) -> PaymentRequest:
        """
        Raises:
            InvalidAmountError: amount below MIN_PAYMENT_REQUEST_AMOUNT
            ValidationException: empty reason
            NotFoundException: unknown order
        """
        try:
            money = AmountValidator.to_money(amount)
        except ValueError:
            raise InvalidAmountError(amount)
        if money < settings.MIN_PAYMENT_REQUEST_AMOUNT:
            raise InvalidAmountError(amount)

        reason = TextSanitizer.sanitize(reason, max_length=200)
        if not reason:
            raise ValidationException("Reason is required", field="reason")

        order = await self.db.get(Order, order_id)
        if order is None:
            raise NotFoundException("Order", order_id, ErrorCode.ORDER_NOT_FOUND)

        request = PaymentRequest(
            order_id=order.id,
            user_id=order.user_id,
            created_by=admin_id,
            amount=money,
            reason=reason,
            description=TextSanitizer.sanitize(description, max_length=2000),
            status=PaymentRequestStatus.PENDING,
        )
        self.db.add(request)
        await self.db.commit()

        logger.info(
            "Payment request created",
            extra_data={
                "payment_request_id": request.id,
                "order_id": order.id,
                "user_id": order.user_id,
                "amount": money,
                "admin_id": admin_id,
            },
        )
        return await self.get(request.id)

    @log_async_operation("accept_payment_request")
    async def accept(self, request_id: int, user_id: int) -> tuple[PaymentRequest, Decimal]:
        """
        Pay a pending request from the wallet.

        On InsufficientFundsError the request stays pending so the user can
        top up and accept again.

        Returns:
            (request, new wallet balance)
        """
        async with wallet_lock(user_id):
            try:
                request = await self._get_pending_for_target(request_id, user_id)
                await self.wallet.debit(
                    user_id,
                    request.amount,
                    description=(
                        f"Payment fee for order {request.order.order_number}: {request.reason}"
                    ),
                    order_id=request.order_id,
                )
                request.status = PaymentRequestStatus.ACCEPTED
                request.responded_at = datetime.utcnow()
                await self.db.commit()
            except AppException:
                await self.db.rollback()
                raise

        new_balance = await self.wallet.get_balance(user_id)
        logger.info(
            "Payment request accepted",
            extra_data={
                "payment_request_id": request_id,
                "user_id": user_id,
                "amount": request.amount,
                "balance_after": new_balance,
            },
        )
        return await self.get(request_id), new_balance

    @log_async_operation("reject_payment_request")
    async def reject(self, request_id: int, user_id: int) -> PaymentRequest:
        try:
            request = await self._get_pending_for_target(request_id, user_id)
            request.status = PaymentRequestStatus.REJECTED
            request.responded_at = datetime.utcnow()
            await self.db.commit()
        except AppException:
            await self.db.rollback()
            raise

        logger.info(
            "Payment request rejected",
            extra_data={"payment_request_id": request_id, "user_id": user_id},
        )
        return await self.get(request_id)

    @log_async_operation("delete_payment_request")
    async def delete(self, request_id: int) -> None:
        """Admin withdrawal of a request. Answered requests stay on record."""
        request = await self.get(request_id, for_update=True)
        if request.status != PaymentRequestStatus.PENDING:
            error = AlreadyTerminalError("Payment request", request.id, request.status.value)
            await self.db.rollback()
            raise error

        await self.db.delete(request)
        await self.db.commit()

        logger.info("Payment request deleted", extra_data={"payment_request_id": request_id})

    async def list_for_user(self, user_id: int) -> list[PaymentRequest]:
        result = await self.db.execute(
            select(PaymentRequest)
            .where(PaymentRequest.user_id == user_id)
            .order_by(PaymentRequest.created_at.desc(), PaymentRequest.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(self, status: Optional[str | PaymentRequestStatus] = None) -> list[PaymentRequest]:
        query = select(PaymentRequest)
        if status:
            try:
                status = PaymentRequestStatus(status)
            except ValueError:
                raise ValidationException(f"Invalid status: {status}", field="status")
            query = query.where(PaymentRequest.status == status)
        result = await self.db.execute(
            query.order_by(PaymentRequest.created_at.desc(), PaymentRequest.id.desc())
        )
        return list(result.scalars().all())
