"""
Tests for Product API Endpoints
"""
import pytest
from httpx import AsyncClient

from app.db.models.product import Product
from app.db.models.user import User


class TestProductAPI:
    """Tests for catalog endpoints"""

    @pytest.mark.integration
    async def test_list_products_is_public(
        self,
        test_client: AsyncClient,
        sample_product: Product,
        product_factory
    ):
        await product_factory(name="Retired", is_active=False)

        response = await test_client.get("/api/products/")

        assert response.status_code == 200
        data = response.json()
        assert [p["name"] for p in data] == ["Ledger Nano"]
        assert data[0]["price"] == 10.0
        assert data[0]["stock"] == 5

    @pytest.mark.integration
    async def test_get_product_not_found(self, test_client: AsyncClient):
        response = await test_client.get("/api/products/99999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ERR_2002"

    @pytest.mark.integration
    async def test_admin_creates_product(
        self,
        test_client: AsyncClient,
        sample_admin: User,
        auth_headers
    ):
        payload = {"name": "Trezor Model T", "price": "179.00", "stock": 12}

        response = await test_client.post("/api/products/", json=payload, headers=auth_headers(sample_admin))

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Trezor Model T"
        assert data["price"] == 179.0
        assert data["is_active"] is True

    @pytest.mark.integration
    async def test_customer_cannot_create_product(
        self,
        test_client: AsyncClient,
        sample_customer: User,
        auth_headers
    ):
        payload = {"name": "Sneaky", "price": "1.00"}

        response = await test_client.post("/api/products/", json=payload, headers=auth_headers(sample_customer))

        assert response.status_code == 403

    @pytest.mark.integration
    async def test_negative_price_rejected(
        self,
        test_client: AsyncClient,
        sample_admin: User,
        auth_headers
    ):
        payload = {"name": "Broken", "price": "-5"}

        response = await test_client.post("/api/products/", json=payload, headers=auth_headers(sample_admin))

        assert response.status_code == 422

    @pytest.mark.integration
    async def test_admin_edits_price_and_stock(
        self,
        test_client: AsyncClient,
        sample_admin: User,
        sample_product: Product,
        auth_headers
    ):
        response = await test_client.patch(
            f"/api/products/{sample_product.id}",
            json={"price": "8.50", "stock": 20},
            headers=auth_headers(sample_admin),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["price"] == 8.5
        assert data["stock"] == 20
