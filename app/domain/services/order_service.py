"""
Order Service - checkout, status lifecycle and cancellation

create_order runs reserve -> debit -> persist as one unit of work. A refused
debit or any persistence error rolls the whole session back, which also undoes
the stock reservation and any ledger row written so far.
"""
import secrets
import time
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AppException,
    ErrorCode,
    ForbiddenError,
    NotFoundException,
    ValidationException,
)
from app.core.locks import wallet_lock
from app.core.logging import get_logger, log_async_operation
from app.core.validation import ShippingAddressValidator, TextSanitizer
from app.db.models.order import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    PaymentMethod,
    generate_order_number,
)
from app.db.models.user import User
from app.domain.services.inventory_service import InventoryService, LineRequest
from app.domain.services.wallet_service import WalletService
from app.state_machine import ensure_transition, parse_order_status

logger = get_logger(__name__)

WALLET_CRYPTOCURRENCY = "WALLET"
WALLET_ADDRESS_LABEL = "Internal Wallet"


def generate_tracking_number() -> str:
    """TRK + epoch milliseconds + 4 random digits"""
    return f"TRK{int(time.time() * 1000)}{secrets.randbelow(10000):04d}"


def parse_payment_method(value: str | PaymentMethod | None) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod((value or "").strip().lower())
    except ValueError:
        raise ValidationException(
            'Invalid payment method. Use "wallet" or "crypto".',
            field="payment_method",
        )


def _to_line(item: LineRequest | dict[str, Any]) -> LineRequest:
    if isinstance(item, LineRequest):
        return item
    try:
        return LineRequest(product_id=int(item["product_id"]), quantity=item["quantity"])
    except (KeyError, TypeError, ValueError):
        raise ValidationException(f"Invalid order item: {item!r}", field="items")


class OrderService:
    """Order lifecycle: placement, admin updates, cancellation"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.inventory = InventoryService(db)
        self.wallet = WalletService(db)

    # ==================== Queries ====================

    async def get_order(self, order_id: int, for_update: bool = False) -> Order:
        query = (
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException("Order", order_id, ErrorCode.ORDER_NOT_FOUND)
        return order

    async def get_order_for_viewer(self, order_id: int, viewer: User) -> Order:
        """Owner or admin only"""
        order = await self.get_order(order_id)
        if order.user_id != viewer.id and not viewer.is_admin:
            raise ForbiddenError()
        return order

    async def list_user_orders(self, user_id: int) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def list_all_orders(self, status: Optional[str | OrderStatus] = None) -> list[Order]:
        query = select(Order)
        if status:
            query = query.where(Order.status == parse_order_status(status))
        result = await self.db.execute(query.order_by(Order.created_at.desc(), Order.id.desc()))
        return list(result.scalars().all())

    # ==================== Placement ====================

    @log_async_operation("create_order")
    async def create_order(
        self,
        user_id: int,
        items: Iterable[LineRequest | dict[str, Any]],
        shipping_address: dict[str, Any],
        payment_method: str | PaymentMethod,
        cryptocurrency: Optional[str] = None,
        wallet_address: Optional[str] = None,
        transaction_hash: Optional[str] = None,
    ) -> Order:
        """
        Turn a cart into an order.

        Raises:
            ValidationException: empty cart, incomplete address, bad payment method
            InsufficientStockError: any line short on stock (nothing reserved)
            InsufficientFundsError: wallet cannot cover the total (nothing persisted)
            ResourceLockedError: another wallet checkout for this user is in flight
        """
        lines = [_to_line(item) for item in items]
        if not lines:
            raise ValidationException("Order must contain at least one item", field="items")

        is_valid, error, field = ShippingAddressValidator.validate(shipping_address)
        if not is_valid:
            raise ValidationException(error, field=field)
        shipping = ShippingAddressValidator.normalize(shipping_address)

        method = parse_payment_method(payment_method)
        if method == PaymentMethod.CRYPTO:
            if not cryptocurrency:
                raise ValidationException(
                    "cryptocurrency is required for crypto payments", field="cryptocurrency"
                )
            if not wallet_address:
                raise ValidationException(
                    "wallet_address is required for crypto payments", field="wallet_address"
                )

        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)

        if method == PaymentMethod.WALLET:
            async with wallet_lock(user_id):
                order_id = await self._place(user_id, lines, shipping, method)
        else:
            order_id = await self._place(
                user_id,
                lines,
                shipping,
                method,
                cryptocurrency=TextSanitizer.sanitize(cryptocurrency, max_length=20),
                wallet_address=TextSanitizer.sanitize(wallet_address, max_length=255),
                transaction_hash=TextSanitizer.sanitize(transaction_hash, max_length=255) or None,
            )

        return await self.get_order(order_id)

    async def _place(
        self,
        user_id: int,
        lines: list[LineRequest],
        shipping: dict[str, str],
        method: PaymentMethod,
        cryptocurrency: Optional[str] = None,
        wallet_address: Optional[str] = None,
        transaction_hash: Optional[str] = None,
    ) -> int:
        order_number = generate_order_number()
        try:
            reserved = await self.inventory.reserve(lines)
            total = sum((line.line_total for line in reserved), Decimal("0.00"))

            payment_entry = None
            # עגלה בסכום 0: בלי חיוב ובלי רשומה בספר התנועות
            if method == PaymentMethod.WALLET and total > 0:
                payment_entry = await self.wallet.debit(
                    user_id,
                    total,
                    description=f"Payment for order {order_number}",
                )

            order = Order(
                order_number=order_number,
                user_id=user_id,
                total_amount=total,
                shipping_full_name=shipping["full_name"],
                shipping_address=shipping["address"],
                shipping_city=shipping["city"],
                shipping_state=shipping["state"],
                shipping_zip_code=shipping["zip_code"],
                shipping_country=shipping["country"],
                shipping_phone=shipping["phone"],
                payment_method=method,
                status=OrderStatus.PENDING,
                items=[
                    OrderItem(
                        product_id=line.product_id,
                        name=line.name,
                        unit_price=line.unit_price,
                        quantity=line.quantity,
                    )
                    for line in reserved
                ],
                status_history=[
                    OrderStatusHistory(
                        status=OrderStatus.PENDING,
                        note="Order placed",
                        updated_by=user_id,
                    )
                ],
            )
            if method == PaymentMethod.WALLET:
                order.cryptocurrency = WALLET_CRYPTOCURRENCY
                order.wallet_address = WALLET_ADDRESS_LABEL
                order.payment_verified = True
            else:
                order.cryptocurrency = cryptocurrency
                order.wallet_address = wallet_address
                order.transaction_hash = transaction_hash
                order.payment_verified = False

            self.db.add(order)
            await self.db.flush()

            if payment_entry is not None:
                payment_entry.order_id = order.id
                order.transaction_hash = str(payment_entry.id)
                await self.db.flush()

            await self.db.commit()

        except AppException:
            await self.db.rollback()
            raise
        except SQLAlchemyError as e:
            logger.error(
                "Order persistence failed, rolled back",
                extra_data={"user_id": user_id, "order_number": order_number, "error": str(e)},
                exc_info=True,
            )
            await self.db.rollback()
            raise

        logger.info(
            "Order placed",
            extra_data={
                "order_id": order.id,
                "order_number": order_number,
                "user_id": user_id,
                "total_amount": total,
                "payment_method": method.value,
                "transaction_id": payment_entry.id if payment_entry is not None else None,
            },
        )
        return order.id

    # ==================== Lifecycle ====================

    async def _restock_and_refund(self, order: Order) -> None:
        """Undo the side effects of a placed order. Caller commits."""
        await self.inventory.release(
            [LineRequest(product_id=item.product_id, quantity=item.quantity) for item in order.items]
        )

        if (
            settings.REFUND_WALLET_ON_CANCEL
            and order.payment_method == PaymentMethod.WALLET
            and order.payment_verified
            and order.total_amount > 0
        ):
            await self.wallet.credit(
                order.user_id,
                order.total_amount,
                description=f"Refund for cancelled order {order.order_number}",
                order_id=order.id,
            )

    def _append_history(self, order: Order, status: OrderStatus, note: str, actor_id: int) -> None:
        order.status_history.append(
            OrderStatusHistory(status=status, note=note, updated_by=actor_id)
        )

    @log_async_operation("update_order")
    async def update_order(
        self,
        order_id: int,
        actor_id: int,
        status: Optional[str | OrderStatus] = None,
        payment_verified: Optional[bool] = None,
        notes: Optional[str] = None,
        tracking_number: Optional[str] = None,
        status_note: Optional[str] = None,
    ) -> Order:
        """
        Admin update of status, payment flag, notes and tracking number.

        Raises:
            InvalidStatusError: unknown status value
            InvalidTransitionError: backwards move, or out of delivered/cancelled
        """
        target = parse_order_status(status) if status is not None else None

        try:
            order = await self.get_order(order_id, for_update=True)
            previous = order.status
            status_changed = target is not None and target != order.status

            if tracking_number is not None:
                order.tracking_number = TextSanitizer.sanitize(tracking_number, max_length=64) or None

            if status_changed:
                ensure_transition(order.id, order.status, target)

                if target == OrderStatus.CANCELLED:
                    await self._restock_and_refund(order)

                if target == OrderStatus.SHIPPED and not order.tracking_number:
                    order.tracking_number = generate_tracking_number()

                note = status_note or f"Order status updated to {target.value}"
                if not status_note and target == OrderStatus.SHIPPED:
                    note = f"{note} - Tracking: {order.tracking_number}"

                self._append_history(order, target, note, actor_id)
                order.status = target

            elif status is None and order.tracking_number and tracking_number:
                self._append_history(
                    order,
                    order.status,
                    f"Tracking number added: {order.tracking_number}",
                    actor_id,
                )

            if payment_verified is not None:
                order.payment_verified = payment_verified
            if notes is not None:
                order.notes = TextSanitizer.sanitize(notes, max_length=5000) or None

            await self.db.commit()

        except AppException:
            await self.db.rollback()
            raise

        if status_changed:
            logger.info(
                "Order status changed",
                extra_data={
                    "order_id": order_id,
                    "from_status": previous.value,
                    "to_status": target.value,
                    "actor_id": actor_id,
                    "tracking_number": order.tracking_number,
                },
            )
        return await self.get_order(order_id)

    @log_async_operation("cancel_order")
    async def cancel_order(self, order_id: int, actor_id: int) -> Order:
        """
        Customer cancellation of their own pending order.

        Raises:
            ForbiddenError: caller does not own the order
            InvalidTransitionError: order is past pending
        """
        try:
            order = await self.get_order(order_id, for_update=True)
            if order.user_id != actor_id:
                raise ForbiddenError()

            ensure_transition(order.id, order.status, OrderStatus.CANCELLED)

            await self._restock_and_refund(order)
            self._append_history(order, OrderStatus.CANCELLED, "Order cancelled by customer", actor_id)
            order.status = OrderStatus.CANCELLED

            await self.db.commit()

        except AppException:
            await self.db.rollback()
            raise

        logger.info(
            "Order cancelled",
            extra_data={"order_id": order_id, "user_id": actor_id},
        )
        return await self.get_order(order_id)
