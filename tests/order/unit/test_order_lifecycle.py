"""
Order Lifecycle Tests

Tests order status changes and their inventory effects:
- Customer cancellation of unpaid orders (reservation released)
- Ownership and paid-order guards
- Admin transitions: confirm COD, ship, deliver (cash collected), cancel (restock)

Run with:
    pytest tests/order/unit/test_order_lifecycle.py -v
"""

from datetime import datetime

import pytest

from conftest import create_user, get_inventory, get_order
from enums.inventory_state import InventoryState
from enums.order_status import OrderStatus
from enums.payment_confirmation import PaymentConfirmationOutcome
from enums.payment_method import PaymentMethod
from enums.payment_status import OrderPaymentStatus, PaymentStatus
from exceptions.order import InvalidOrderStateException, OrderNotFoundException, OrderOwnershipException
from models.checkout import CheckoutRequest
from repositories.payment_transaction import PaymentTransactionRepository
from services.cart import CartService
from services.checkout import CheckoutService
from services.order import OrderService
from services.payment import PaymentService


async def place_cod_order(session, catalog, user):
    """Cash-on-delivery order of 2 kaftans (5,000,000 kobo, no shipping)."""
    cart, _ = await CartService.get_or_create_cart(user.id, None, session)
    await CartService.add_item(cart, catalog.kaftan_variant_id, 2, session)
    return await CheckoutService.place_order(user, None, CheckoutRequest.model_validate({
        "paymentMethod": "CASH_ON_DELIVERY",
        "address": {"fullName": "Amina Bello", "addressLine1": "12 Allen Avenue"},
    }), session)


async def pay(pending_order):
    outcome = await PaymentService.confirm_payment(
        pending_order.payment_reference, pending_order.total_kobo, "NGN", datetime(2024, 5, 1, 10, 15),
        {"event": "charge.success"}, "webhook",
    )
    assert outcome == PaymentConfirmationOutcome.CONFIRMED


class TestCustomerCancel:

    @pytest.mark.asyncio
    async def test_cancel_releases_reservation(self, session, catalog, customer, pending_order):
        order = await OrderService.cancel_order(pending_order.order_id, customer, session)

        assert order.status == OrderStatus.CANCELLED
        stored = await get_order(pending_order.order_id)
        assert stored.cancellation_reason == "Cancelled by customer"
        assert stored.cancelled_at is not None
        assert stored.inventory_state == InventoryState.RELEASED

        fabric = await get_inventory(catalog.fabric_variant_id)
        assert fabric.reserved == 0
        assert fabric.quantity == 10

    @pytest.mark.asyncio
    async def test_cancel_twice_is_a_noop(self, session, catalog, customer, pending_order):
        await OrderService.cancel_order(pending_order.order_id, customer, session)

        order = await OrderService.cancel_order(pending_order.order_id, customer, session)

        assert order.status == OrderStatus.CANCELLED
        assert (await get_inventory(catalog.kaftan_variant_id)).reserved == 0

    @pytest.mark.asyncio
    async def test_other_customer_cannot_cancel(self, session, pending_order):
        other = await create_user(session, "bola@example.com")

        with pytest.raises(OrderOwnershipException):
            await OrderService.cancel_order(pending_order.order_id, other, session)

    @pytest.mark.asyncio
    async def test_paid_order_cannot_be_cancelled_by_customer(self, session, customer, pending_order):
        await pay(pending_order)

        with pytest.raises(InvalidOrderStateException):
            await OrderService.cancel_order(pending_order.order_id, customer, session)

    @pytest.mark.asyncio
    async def test_unknown_order(self, session, customer):
        with pytest.raises(OrderNotFoundException):
            await OrderService.cancel_order("00000000-0000-0000-0000-000000000000", customer, session)

    @pytest.mark.asyncio
    async def test_cancel_endpoint(self, client, catalog, customer, pending_order):
        from conftest import login

        await login(client, customer.email)

        response = await client.post(f"/api/orders/{pending_order.order_id}/cancel")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "CANCELLED"
        assert data["orderNumber"] == pending_order.order_id[:8].upper()

    @pytest.mark.asyncio
    async def test_cancel_endpoint_requires_login(self, client, pending_order):
        response = await client.post(f"/api/orders/{pending_order.order_id}/cancel")

        assert response.status_code == 401


class TestAdminTransitions:

    @pytest.mark.asyncio
    async def test_cod_order_full_lifecycle(self, session, catalog, customer, admin):
        result = await place_cod_order(session, catalog, customer)

        order = await OrderService.admin_update_status(result.order_id, "PROCESSING", admin, session)
        assert order.status == OrderStatus.PROCESSING
        kaftan = await get_inventory(catalog.kaftan_variant_id)
        assert (kaftan.quantity, kaftan.reserved) == (1, 0)

        order = await OrderService.admin_update_status(result.order_id, "SHIPPED", admin, session)
        assert order.status == OrderStatus.SHIPPED
        assert order.payment_status == OrderPaymentStatus.UNPAID

        order = await OrderService.admin_update_status(result.order_id, "DELIVERED", admin, session)
        assert order.status == OrderStatus.DELIVERED
        assert order.payment_status == OrderPaymentStatus.PAID
        assert order.amount_paid_kobo == 5000000
        assert order.paid_at is not None
        assert [payment.status for payment in order.payments] == [PaymentStatus.PAID]

        stored = await get_order(result.order_id)
        assert stored.shipped_at is not None
        assert stored.delivered_at is not None

    @pytest.mark.asyncio
    async def test_admin_cannot_confirm_unpaid_paystack_order(self, session, admin, pending_order):
        with pytest.raises(InvalidOrderStateException):
            await OrderService.admin_update_status(pending_order.order_id, "PROCESSING", admin, session)

        assert (await get_order(pending_order.order_id)).status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_cancelling_paid_order_restocks(self, session, catalog, admin, pending_order):
        await pay(pending_order)
        assert (await get_inventory(catalog.fabric_variant_id)).quantity == 8

        order = await OrderService.admin_update_status(pending_order.order_id, "CANCELLED", admin, session)

        assert order.status == OrderStatus.CANCELLED
        stored = await get_order(pending_order.order_id)
        assert stored.inventory_state == InventoryState.RESTOCKED
        assert stored.cancellation_reason == "Cancelled by admin"
        assert (await get_inventory(catalog.fabric_variant_id)).quantity == 10
        assert (await get_inventory(catalog.kaftan_variant_id)).quantity == 3

    @pytest.mark.asyncio
    async def test_pending_cannot_skip_to_shipped(self, session, admin, pending_order):
        with pytest.raises(InvalidOrderStateException):
            await OrderService.admin_update_status(pending_order.order_id, "SHIPPED", admin, session)

    @pytest.mark.asyncio
    async def test_delivered_is_final(self, session, catalog, customer, admin):
        result = await place_cod_order(session, catalog, customer)
        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            await OrderService.admin_update_status(result.order_id, status, admin, session)

        with pytest.raises(InvalidOrderStateException):
            await OrderService.admin_update_status(result.order_id, "CANCELLED", admin, session)

    @pytest.mark.asyncio
    async def test_same_status_is_a_noop(self, session, admin, pending_order):
        order = await OrderService.admin_update_status(pending_order.order_id, "PENDING_PAYMENT", admin, session)

        assert order.status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_cod_delivery_does_not_touch_paystack_transactions(self, session, catalog, customer, admin):
        result = await place_cod_order(session, catalog, customer)
        for status in ("PROCESSING", "SHIPPED", "DELIVERED"):
            await OrderService.admin_update_status(result.order_id, status, admin, session)

        transactions = await PaymentTransactionRepository.get_by_order_id(result.order_id, session)
        assert [transaction.provider for transaction in transactions] == [PaymentMethod.CASH_ON_DELIVERY]
