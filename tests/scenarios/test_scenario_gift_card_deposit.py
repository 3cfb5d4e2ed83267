"""
Scenario: gift-card deposit from submission to spend

Covers:
- Pending deposits do not move the balance
- Admin confirmation credits the wallet exactly once
- A rejected deposit stays in the ledger as failed
- Newly allowed brands are accepted after the admin edits the list
"""
import pytest

from app.db.models.wallet_transaction import TransactionStatus, TransactionType

from tests.scenarios.conftest import (
    assert_balance,
    assert_ledger_count,
    checkout,
)


def _gift_card(amount: str, brand: str = "Steam") -> dict:
    return {
        "amount": amount,
        "gift_card_type": brand,
        "gift_card_image": f"uploads/{brand.lower()}-card.jpg",
        "gift_card_code": "XXXX-YYYY-ZZZZ",
    }


@pytest.mark.scenario
class TestGiftCardDeposit:
    """Deposit review and spend"""

    @pytest.mark.asyncio
    async def test_confirmed_card_funds_an_order(
        self, test_client, db_session, user_factory, product_factory, sample_admin, auth_headers
    ):
        customer = await user_factory(wallet_balance="0.00")
        product = await product_factory(name="BitBox02", price="60.00", stock=2)
        customer_id, product_id = customer.id, product.id
        customer_headers = auth_headers(customer)
        admin_headers = auth_headers(sample_admin)

        # nothing to spend yet
        await checkout(test_client, customer_headers, [(product_id, 1)], expected=400)

        submitted = await test_client.post(
            "/api/wallet/deposit/giftcard", json=_gift_card("75.00"), headers=customer_headers
        )
        assert submitted.status_code == 201
        tx_id = submitted.json()["transaction"]["id"]
        await assert_balance(db_session, customer_id, "0.00")
        await assert_ledger_count(db_session, customer_id, 1, status=TransactionStatus.PENDING)

        confirmed = await test_client.post(
            f"/api/wallet/deposit/{tx_id}/confirm",
            json={"admin_notes": "Code redeemed"},
            headers=admin_headers,
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["new_balance"] == 75.0

        again = await test_client.post(f"/api/wallet/deposit/{tx_id}/confirm", headers=admin_headers)
        assert again.status_code == 400
        await assert_balance(db_session, customer_id, "75.00")

        data = await checkout(test_client, customer_headers, [(product_id, 1)])

        assert data["wallet_balance"] == 15.0
        await assert_ledger_count(
            db_session, customer_id, 1, type=TransactionType.DEPOSIT, status=TransactionStatus.COMPLETED
        )
        await assert_ledger_count(
            db_session, customer_id, 1, type=TransactionType.PAYMENT, status=TransactionStatus.COMPLETED
        )

    @pytest.mark.asyncio
    async def test_rejected_card_is_kept_as_failed(
        self, test_client, db_session, user_factory, sample_admin, auth_headers
    ):
        customer = await user_factory(wallet_balance="10.00")
        customer_id = customer.id
        admin_headers = auth_headers(sample_admin)

        submitted = await test_client.post(
            "/api/wallet/deposit/giftcard", json=_gift_card("40.00"), headers=auth_headers(customer)
        )
        tx_id = submitted.json()["transaction"]["id"]

        rejected = await test_client.post(
            f"/api/wallet/deposit/{tx_id}/reject",
            json={"admin_notes": "Code already used"},
            headers=admin_headers,
        )

        assert rejected.status_code == 200
        await assert_balance(db_session, customer_id, "10.00")
        await assert_ledger_count(db_session, customer_id, 1, status=TransactionStatus.FAILED)

        pending = await test_client.get("/api/wallet/admin/pending-deposits", headers=admin_headers)
        assert pending.json() == []

    @pytest.mark.asyncio
    async def test_brand_added_by_admin(
        self, test_client, user_factory, sample_admin, auth_headers
    ):
        customer = await user_factory()
        customer_headers = auth_headers(customer)
        admin_headers = auth_headers(sample_admin)

        before = await test_client.post(
            "/api/wallet/deposit/giftcard", json=_gift_card("20.00", "Binance"), headers=customer_headers
        )
        assert before.status_code == 400

        updated = await test_client.put(
            "/api/wallet/admin/giftcard-types",
            json={"gift_card_types": ["Steam", "Binance"]},
            headers=admin_headers,
        )
        assert updated.status_code == 200

        after = await test_client.post(
            "/api/wallet/deposit/giftcard", json=_gift_card("20.00", "Binance"), headers=customer_headers
        )
        assert after.status_code == 201
