"""
Checkout API Tests

Tests /api/checkout through the ASGI app:
- Checkout context (cart summary, shipping methods, saved addresses)
- Guest and logged-in orders, Paystack and cash on delivery
- Invalid payloads and the checkout rate limit

Run with:
    pytest tests/checkout/unit/test_checkout_api.py -v
"""

import pytest

import config
from conftest import AUTHORIZATION_URL, get_inventory, get_order, login
from enums.order_status import OrderStatus

CHECKOUT_URL = "/api/checkout"

INLINE_ADDRESS = {"fullName": "Chidi Okafor", "phone": "08031234567", "addressLine1": "4 Marina Road",
                  "city": "Lagos", "state": "Lagos"}


async def fill_cart(client, catalog):
    response = await client.post("/api/cart/items", json={"variantId": catalog.kaftan_variant_id, "quantity": 1})
    assert response.status_code == 200, response.text


class TestCheckoutContext:

    @pytest.mark.asyncio
    async def test_guest_context(self, client, catalog):
        await fill_cart(client, catalog)

        response = await client.get(CHECKOUT_URL)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["cart"]["subtotalKobo"] == 2500000
        assert data["cart"]["itemsCount"] == 1
        assert [method["name"] for method in data["shippingMethods"]] == ["Standard Delivery"]
        assert data["addresses"] == []

    @pytest.mark.asyncio
    async def test_context_without_cart(self, client, catalog):
        response = await client.get(CHECKOUT_URL)

        assert response.json()["data"]["cart"] is None


class TestPlaceOrder:

    @pytest.mark.asyncio
    async def test_guest_paystack_checkout(self, client, catalog, paystack_init):
        await fill_cart(client, catalog)

        response = await client.post(CHECKOUT_URL, json={
            "paymentMethod": "PAYSTACK",
            "email": "guest@example.com",
            "address": INLINE_ADDRESS,
            "shippingMethodId": catalog.shipping_method_id,
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["paymentMethod"] == "PAYSTACK"
        assert data["totalKobo"] == 2750000
        assert data["authorizationUrl"] == AUTHORIZATION_URL
        paystack_init.assert_awaited_once()

        order = await get_order(data["orderId"])
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.email == "guest@example.com"
        inventory = await get_inventory(catalog.kaftan_variant_id)
        assert inventory.reserved == 1

    @pytest.mark.asyncio
    async def test_cart_is_empty_after_checkout(self, client, catalog, paystack_init):
        await fill_cart(client, catalog)
        await client.post(CHECKOUT_URL, json={"email": "guest@example.com", "address": INLINE_ADDRESS})

        response = await client.get("/api/cart")

        assert response.json()["data"]["items"] == []

    @pytest.mark.asyncio
    async def test_logged_in_cash_on_delivery(self, client, catalog, customer, paystack_init):
        await login(client, customer.email)
        await fill_cart(client, catalog)

        response = await client.post(CHECKOUT_URL, json={
            "paymentMethod": "CASH_ON_DELIVERY",
            "address": INLINE_ADDRESS,
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["paymentMethod"] == "CASH_ON_DELIVERY"
        assert data["paymentReference"].startswith("cod_")
        assert data["message"] == "Order created. Pay on Delivery will be handled at delivery time."
        paystack_init.assert_not_awaited()

        orders = (await client.get("/api/orders")).json()["data"]
        assert [order["id"] for order in orders] == [data["orderId"]]

    @pytest.mark.asyncio
    async def test_guest_paystack_without_email(self, client, catalog, paystack_init):
        await fill_cart(client, catalog)

        response = await client.post(CHECKOUT_URL, json={"address": INLINE_ADDRESS})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Email is required for Paystack checkout"}

    @pytest.mark.asyncio
    async def test_missing_address(self, client, catalog, paystack_init):
        await fill_cart(client, catalog)

        response = await client.post(CHECKOUT_URL, json={"email": "guest@example.com", "address": {"city": "Kano"}})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Address is required"}

    @pytest.mark.asyncio
    async def test_without_cart(self, client, catalog):
        response = await client.post(CHECKOUT_URL, json={"email": "guest@example.com", "address": INLINE_ADDRESS})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Cart is empty"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"address": "4 Marina Road"}'])
    async def test_invalid_payload(self, client, catalog, body):
        response = await client.post(CHECKOUT_URL, content=body, headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Invalid payload"}


class TestCheckoutRateLimit:

    @pytest.mark.asyncio
    async def test_checkout_attempts_are_limited_per_client(self, client, catalog, redis_client):
        for _ in range(config.MAX_ORDERS_PER_USER_PER_HOUR):
            response = await client.post(CHECKOUT_URL, json={"address": INLINE_ADDRESS})
            assert response.status_code == 400

        response = await client.post(CHECKOUT_URL, json={"address": INLINE_ADDRESS})

        assert response.status_code == 429
        assert int(response.headers["retry-after"]) > 0
