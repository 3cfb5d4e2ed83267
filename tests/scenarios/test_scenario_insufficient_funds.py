"""
Scenario: checkout the wallet cannot cover

Covers:
- A failed debit leaves no order, no ledger entry and no reserved stock
- The wallet lock is released so the next checkout goes through
"""
import pytest
from sqlalchemy import func, select

from app.db.models.order import Order

from tests.scenarios.conftest import (
    assert_balance,
    assert_ledger_count,
    assert_stock,
    checkout,
)


@pytest.mark.scenario
class TestInsufficientFunds:
    """Refused checkout rolls back completely"""

    @pytest.mark.asyncio
    async def test_refused_checkout_leaves_no_trace(
        self, test_client, db_session, user_factory, product_factory, auth_headers, fake_redis
    ):
        customer = await user_factory(wallet_balance="30.00")
        product = await product_factory(name="Ledger Stax", price="25.00", stock=2)
        customer_id, product_id = customer.id, product.id
        headers = auth_headers(customer)

        refused = await checkout(test_client, headers, [(product_id, 2)], expected=400)

        assert refused["error"]["code"] == "ERR_4002"
        assert refused["error"]["details"]["shortfall"] == "20.00"
        await assert_balance(db_session, customer_id, "30.00")
        await assert_stock(db_session, product_id, 2)
        await assert_ledger_count(db_session, customer_id, 0)
        orders = await db_session.scalar(select(func.count(Order.id)).where(Order.user_id == customer_id))
        assert orders == 0
        assert await fake_redis.get(f"wallet_lock:{customer_id}") is None

        # a smaller basket fits
        await checkout(test_client, headers, [(product_id, 1)])

        await assert_balance(db_session, customer_id, "5.00")
        await assert_stock(db_session, product_id, 1)
        await assert_ledger_count(db_session, customer_id, 1)

    @pytest.mark.asyncio
    async def test_crypto_checkout_ignores_wallet(
        self, test_client, db_session, user_factory, product_factory, auth_headers
    ):
        """An empty wallet does not block a crypto order"""
        customer = await user_factory(wallet_balance="0.00")
        product = await product_factory(price="99.00", stock=1)
        customer_id, product_id = customer.id, product.id

        data = await checkout(
            test_client,
            auth_headers(customer),
            [(product_id, 1)],
            payment_method="crypto",
            cryptocurrency="ETH",
            wallet_address="0x52908400098527886E0F7030069857D2E4169EE7",
        )

        assert data["order"]["payment_verified"] is False
        await assert_balance(db_session, customer_id, "0.00")
        await assert_stock(db_session, product_id, 0)
        await assert_ledger_count(db_session, customer_id, 0)
