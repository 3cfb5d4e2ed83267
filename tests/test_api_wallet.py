"""
Tests for Wallet API Endpoints
"""
import pytest
from httpx import AsyncClient

from app.db.models.user import User


class TestCustomerWallet:

    @pytest.mark.integration
    async def test_get_wallet(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        sample_product,
        order_factory,
        auth_headers
    ):
        await order_factory(sample_customer, [(sample_product, 1)])

        response = await test_client.get("/api/wallet/", headers=auth_headers(sample_customer))

        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == 90.0
        assert len(data["transactions"]) == 1
        assert data["transactions"][0]["type"] == "payment"
        assert data["transactions"][0]["status"] == "completed"

    @pytest.mark.integration
    async def test_cash_deposit_request(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        auth_headers
    ):
        response = await test_client.post(
            "/api/wallet/deposit", json={"amount": "25.00"}, headers=auth_headers(sample_customer)
        )

        assert response.status_code == 201
        transaction = response.json()["transaction"]
        assert transaction["status"] == "pending"
        assert transaction["deposit_method"] == "cash"
        assert transaction["amount"] == 25.0

    @pytest.mark.integration
    async def test_deposit_below_minimum(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        auth_headers
    ):
        response = await test_client.post(
            "/api/wallet/deposit", json={"amount": "0.50"}, headers=auth_headers(sample_customer)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ERR_4003"

    @pytest.mark.integration
    async def test_gift_card_types_and_deposit(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        auth_headers
    ):
        types = await test_client.get("/api/wallet/giftcard-types")
        assert "Steam" in types.json()["gift_card_types"]

        response = await test_client.post(
            "/api/wallet/deposit/giftcard",
            json={
                "amount": "50",
                "gift_card_type": "Steam",
                "gift_card_image": "uploads/steam.jpg",
                "gift_card_code": "STEAM-XYZ",
            },
            headers=auth_headers(sample_customer),
        )

        assert response.status_code == 201
        transaction = response.json()["transaction"]
        assert transaction["deposit_method"] == "giftcard"
        assert transaction["description"] == "Steam gift card deposit of $50.00"

    @pytest.mark.integration
    async def test_gift_card_unknown_brand(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        auth_headers
    ):
        response = await test_client.post(
            "/api/wallet/deposit/giftcard",
            json={"amount": "50", "gift_card_type": "Nope", "gift_card_image": "x.jpg"},
            headers=auth_headers(sample_customer),
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid gift card type"


class TestAdminWallet:

    @pytest.mark.integration
    async def test_confirm_deposit(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        sample_admin: User,
        auth_headers
    ):
        created = await test_client.post(
            "/api/wallet/deposit", json={"amount": "40"}, headers=auth_headers(sample_customer)
        )
        tx_id = created.json()["transaction"]["id"]

        pending = await test_client.get("/api/wallet/admin/pending-deposits", headers=auth_headers(sample_admin))
        assert [t["id"] for t in pending.json()] == [tx_id]

        response = await test_client.post(
            f"/api/wallet/deposit/{tx_id}/confirm",
            json={"admin_notes": "Cash counted"},
            headers=auth_headers(sample_admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Deposit confirmed"
        assert data["new_balance"] == 140.0
        assert data["transaction"]["status"] == "completed"

        again = await test_client.post(f"/api/wallet/deposit/{tx_id}/confirm", headers=auth_headers(sample_admin))
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "ERR_6004"

    @pytest.mark.integration
    async def test_reject_deposit(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        sample_admin: User,
        auth_headers
    ):
        created = await test_client.post(
            "/api/wallet/deposit", json={"amount": "40"}, headers=auth_headers(sample_customer)
        )
        tx_id = created.json()["transaction"]["id"]

        response = await test_client.post(f"/api/wallet/deposit/{tx_id}/reject", headers=auth_headers(sample_admin))

        assert response.status_code == 200
        assert response.json()["message"] == "Deposit rejected"
        assert response.json()["transaction"]["status"] == "failed"

    @pytest.mark.integration
    async def test_customer_cannot_confirm(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        auth_headers
    ):
        headers = auth_headers(sample_customer)
        created = await test_client.post("/api/wallet/deposit", json={"amount": "40"}, headers=headers)
        tx_id = created.json()["transaction"]["id"]

        response = await test_client.post(f"/api/wallet/deposit/{tx_id}/confirm", headers=headers)

        assert response.status_code == 403

    @pytest.mark.integration
    async def test_update_gift_card_types(
        self,
        test_client: AsyncClient,
        sample_admin: User,
        auth_headers
    ):
        response = await test_client.put(
            "/api/wallet/admin/giftcard-types",
            json={"gift_card_types": ["Apple", "Apple", "Xbox"]},
            headers=auth_headers(sample_admin),
        )

        assert response.status_code == 200
        assert response.json()["gift_card_types"] == ["Apple", "Xbox"]

    @pytest.mark.integration
    async def test_users_balances_and_recalculate(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        sample_admin: User,
        auth_headers
    ):
        headers = auth_headers(sample_admin)

        balances = await test_client.get("/api/wallet/admin/users-balances", headers=headers)
        assert [u["wallet_balance"] for u in balances.json()] == [100.0]

        # sample_customer was seeded with a balance but has no ledger history
        response = await test_client.post(
            f"/api/wallet/admin/recalculate-balance/{sample_customer.id}", headers=headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "user_id": sample_customer.id,
            "old_balance": 100.0,
            "new_balance": 0.0,
            "difference": -100.0,
            "transactions_processed": 0,
        }

    @pytest.mark.integration
    async def test_all_transactions_filter(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        sample_admin: User,
        auth_headers
    ):
        await test_client.post("/api/wallet/deposit", json={"amount": "10"}, headers=auth_headers(sample_customer))

        response = await test_client.get(
            "/api/wallet/admin/all-transactions?type=deposit&status=pending",
            headers=auth_headers(sample_admin),
        )

        assert response.status_code == 200
        assert len(response.json()) == 1
