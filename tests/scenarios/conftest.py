"""
Fixtures and helpers for end-to-end scenario tests.

Provides:
- Request payload builders for checkout
- Short API call helpers that assert the expected status code
- Fresh-from-DB assertions (order status, balance, stock, ledger)
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.order import Order
from app.db.models.product import Product
from app.db.models.user import User
from app.db.models.wallet_transaction import TransactionStatus, TransactionType, WalletTransaction


# ============================================================================
# Payload builders
# ============================================================================

def build_checkout(
    lines: list[tuple[int, int]],
    payment_method: str = "wallet",
    **extra,
) -> dict:
    """Checkout body for [(product_id, quantity), ...]"""
    payload = {
        "items": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
        "shipping_address": {
            "full_name": "Morgan Reyes",
            "address": "500 Bay Street",
            "city": "Toronto",
            "state": "ON",
            "zip_code": "M5G 2C3",
            "country": "Canada",
            "phone": "+1 416 555 0123",
        },
        "payment_method": payment_method,
    }
    payload.update(extra)
    return payload


# ============================================================================
# API call helpers
# ============================================================================

async def checkout(client, headers: dict, lines: list[tuple[int, int]], expected: int = 201, **extra) -> dict:
    """POST /api/orders/ and assert the status code"""
    resp = await client.post("/api/orders/", json=build_checkout(lines, **extra), headers=headers)
    assert resp.status_code == expected, f"Checkout returned {resp.status_code}: {resp.text}"
    return resp.json()


async def admin_set_status(client, headers: dict, order_id: int, status: str, expected: int = 200) -> dict:
    resp = await client.put(f"/api/orders/{order_id}", json={"status": status}, headers=headers)
    assert resp.status_code == expected, f"Status update returned {resp.status_code}: {resp.text}"
    return resp.json()


# ============================================================================
# DB assertions
# ============================================================================

async def assert_order_status(db_session: AsyncSession, order_id: int, expected_status) -> Order:
    """Fresh read of the order, returns it"""
    result = await db_session.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    )
    order = result.scalar_one()
    assert order.status == expected_status, f"expected {expected_status}, got {order.status}"
    return order


async def assert_balance(db_session: AsyncSession, user_id: int, expected: str | Decimal) -> None:
    balance = await db_session.scalar(select(User.wallet_balance).where(User.id == user_id))
    assert Decimal(str(balance)) == Decimal(str(expected)), f"expected balance {expected}, got {balance}"


async def assert_stock(db_session: AsyncSession, product_id: int, expected: int) -> None:
    stock = await db_session.scalar(select(Product.stock).where(Product.id == product_id))
    assert stock == expected, f"expected stock {expected}, got {stock}"


async def assert_ledger_count(
    db_session: AsyncSession,
    user_id: int,
    expected_count: int,
    type: Optional[TransactionType] = None,
    status: Optional[TransactionStatus] = None,
) -> None:
    query = select(func.count(WalletTransaction.id)).where(WalletTransaction.user_id == user_id)
    if type is not None:
        query = query.where(WalletTransaction.type == type)
    if status is not None:
        query = query.where(WalletTransaction.status == status)
    count = await db_session.scalar(query)
    assert count == expected_count, f"expected {expected_count} ledger entries, found {count}"
