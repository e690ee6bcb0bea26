"""
Payment Confirmation Tests

Tests the single routine that marks a Paystack payment as paid, shared by
the webhook and by verification:
- Order moves to PROCESSING and its reservation is committed exactly once
- Repeated and concurrent confirmations are no-ops
- Amount and currency mismatches change nothing
- Payments arriving after the order was cancelled are flagged, not applied

Run with:
    pytest tests/payment/unit/test_payment_confirmation.py -v
"""

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from conftest import get_inventory, get_order, paystack_verify_response, create_user
from enums.inventory_state import InventoryState
from enums.order_status import OrderStatus
from enums.payment_confirmation import PaymentConfirmationOutcome
from enums.payment_status import OrderPaymentStatus, PaymentStatus
from models.checkout import CheckoutRequest
from models.user import UserDTO
from repositories.payment_transaction import PaymentTransactionRepository
from services.cart import CartService
from services.checkout import CheckoutService
from services.order import OrderService
from services.payment import PaymentService

PAID_AT = datetime(2024, 5, 1, 10, 15)


class TestConfirmPayment:

    @pytest.mark.asyncio
    async def test_confirm_commits_reservation(self, session, catalog, pending_order):
        outcome = await PaymentService.confirm_payment(
            pending_order.payment_reference, pending_order.total_kobo, "NGN", PAID_AT,
            {"event": "charge.success"}, "webhook"
        )

        assert outcome == PaymentConfirmationOutcome.CONFIRMED
        order = await get_order(pending_order.order_id)
        assert order.status == OrderStatus.PROCESSING
        assert order.payment_status == OrderPaymentStatus.PAID
        assert order.amount_paid_kobo == pending_order.total_kobo
        assert order.paid_at == PAID_AT
        assert order.inventory_state == InventoryState.COMMITTED

        fabric_inventory = await get_inventory(catalog.fabric_variant_id)
        assert fabric_inventory.quantity == Decimal("8")
        assert fabric_inventory.reserved == Decimal("0")
        kaftan_inventory = await get_inventory(catalog.kaftan_variant_id)
        assert kaftan_inventory.quantity == Decimal("2")
        assert kaftan_inventory.reserved == Decimal("0")

        transaction = await PaymentTransactionRepository.get_by_reference(pending_order.payment_reference, session)
        assert transaction.status == PaymentStatus.PAID
        assert transaction.paid_at == PAID_AT
        assert transaction.raw_verify_payload == {"event": "charge.success"}

    @pytest.mark.asyncio
    async def test_second_confirmation_is_noop(self, catalog, pending_order):
        args = (pending_order.payment_reference, pending_order.total_kobo, "NGN", PAID_AT, None)
        assert await PaymentService.confirm_payment(*args, "webhook") == PaymentConfirmationOutcome.CONFIRMED
        assert await PaymentService.confirm_payment(*args, "verify") == PaymentConfirmationOutcome.ALREADY_PAID

        fabric_inventory = await get_inventory(catalog.fabric_variant_id)
        assert fabric_inventory.quantity == Decimal("8")
        assert fabric_inventory.reserved == Decimal("0")

    @pytest.mark.asyncio
    async def test_concurrent_confirmations_commit_once(self, catalog, pending_order):
        args = (pending_order.payment_reference, pending_order.total_kobo, "NGN", PAID_AT, None)
        outcomes = await asyncio.gather(
            PaymentService.confirm_payment(*args, "webhook"),
            PaymentService.confirm_payment(*args, "verify"),
        )

        assert sorted(outcome.value for outcome in outcomes) == ["ALREADY_PAID", "CONFIRMED"]
        kaftan_inventory = await get_inventory(catalog.kaftan_variant_id)
        assert kaftan_inventory.quantity == Decimal("2")
        assert kaftan_inventory.reserved == Decimal("0")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [100, "3250000", None, True])
    async def test_amount_mismatch_changes_nothing(self, session, catalog, pending_order, amount):
        outcome = await PaymentService.confirm_payment(
            pending_order.payment_reference, amount, "NGN", PAID_AT, None, "webhook"
        )

        assert outcome == PaymentConfirmationOutcome.AMOUNT_MISMATCH
        order = await get_order(pending_order.order_id)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.payment_status == OrderPaymentStatus.UNPAID
        transaction = await PaymentTransactionRepository.get_by_reference(pending_order.payment_reference, session)
        assert transaction.status == PaymentStatus.INITIALIZED
        assert (await get_inventory(catalog.kaftan_variant_id)).reserved == Decimal("1")

    @pytest.mark.asyncio
    async def test_currency_mismatch(self, pending_order):
        outcome = await PaymentService.confirm_payment(
            pending_order.payment_reference, pending_order.total_kobo, "USD", PAID_AT, None, "webhook"
        )
        assert outcome == PaymentConfirmationOutcome.CURRENCY_MISMATCH
        assert (await get_order(pending_order.order_id)).status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_missing_currency_means_default(self, pending_order):
        outcome = await PaymentService.confirm_payment(
            pending_order.payment_reference, pending_order.total_kobo, None, None, None, "webhook"
        )
        assert outcome == PaymentConfirmationOutcome.CONFIRMED
        assert (await get_order(pending_order.order_id)).paid_at is not None

    @pytest.mark.asyncio
    async def test_unknown_reference(self, database):
        outcome = await PaymentService.confirm_payment("no-such-ref", 100, "NGN", PAID_AT, None, "webhook")
        assert outcome == PaymentConfirmationOutcome.UNKNOWN_REFERENCE

    @pytest.mark.asyncio
    async def test_late_payment_on_cancelled_order(self, session, catalog, customer, pending_order):
        await OrderService.cancel_order(pending_order.order_id, customer, session)
        assert (await get_inventory(catalog.kaftan_variant_id)).reserved == Decimal("0")

        outcome = await PaymentService.confirm_payment(
            pending_order.payment_reference, pending_order.total_kobo, "NGN", PAID_AT, None, "webhook"
        )

        assert outcome == PaymentConfirmationOutcome.LATE_PAYMENT
        order = await get_order(pending_order.order_id)
        assert order.status == OrderStatus.CANCELLED
        assert order.payment_status == OrderPaymentStatus.PAID
        assert order.inventory_state == InventoryState.RELEASED
        # Released stock is not taken again
        kaftan_inventory = await get_inventory(catalog.kaftan_variant_id)
        assert kaftan_inventory.quantity == Decimal("3")
        assert kaftan_inventory.reserved == Decimal("0")


class TestVerifyPayment:

    @pytest.mark.asyncio
    async def test_successful_verification(self, pending_order, paystack_verify):
        paystack_verify.return_value = paystack_verify_response(
            pending_order.payment_reference, pending_order.total_kobo
        )

        view = await PaymentService.verify_payment(f"  {pending_order.payment_reference} ")

        assert view.paid is True
        assert view.order_id == pending_order.order_id
        paystack_verify.assert_awaited_once_with(pending_order.payment_reference)
        order = await get_order(pending_order.order_id)
        assert order.status == OrderStatus.PROCESSING
        assert order.paid_at == datetime(2024, 5, 1, 10, 15)

    @pytest.mark.asyncio
    async def test_already_paid_skips_gateway(self, pending_order, paystack_verify):
        await PaymentService.confirm_payment(
            pending_order.payment_reference, pending_order.total_kobo, "NGN", PAID_AT, None, "webhook"
        )

        view = await PaymentService.verify_payment(pending_order.payment_reference)

        assert view.already_paid is True
        paystack_verify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_yet_paid(self, session, pending_order, paystack_verify):
        paystack_verify.return_value = paystack_verify_response(
            pending_order.payment_reference, pending_order.total_kobo, status="abandoned"
        )

        view = await PaymentService.verify_payment(pending_order.payment_reference)

        assert view.paid is False
        assert view.paystack_status == "abandoned"
        transaction = await PaymentTransactionRepository.get_by_reference(pending_order.payment_reference, session)
        assert transaction.status == PaymentStatus.INITIALIZED
        assert transaction.raw_verify_payload["data"]["status"] == "abandoned"
        assert (await get_order(pending_order.order_id)).status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_amount_mismatch_raises(self, pending_order, paystack_verify):
        from exceptions.payment import PaymentAmountMismatchException
        paystack_verify.return_value = paystack_verify_response(pending_order.payment_reference, 100)

        with pytest.raises(PaymentAmountMismatchException):
            await PaymentService.verify_payment(pending_order.payment_reference)
        assert (await get_order(pending_order.order_id)).status == OrderStatus.PENDING_PAYMENT

    @pytest.mark.asyncio
    async def test_currency_mismatch_raises(self, pending_order, paystack_verify):
        from exceptions.payment import PaymentCurrencyMismatchException
        paystack_verify.return_value = paystack_verify_response(
            pending_order.payment_reference, pending_order.total_kobo, currency="GHS"
        )

        with pytest.raises(PaymentCurrencyMismatchException):
            await PaymentService.verify_payment(pending_order.payment_reference)

    @pytest.mark.asyncio
    async def test_gateway_error(self, pending_order, paystack_verify):
        from exceptions.payment import PaymentGatewayException
        paystack_verify.return_value = paystack_verify_response(
            pending_order.payment_reference, pending_order.total_kobo, ok=False
        )

        with pytest.raises(PaymentGatewayException) as exc_info:
            await PaymentService.verify_payment(pending_order.payment_reference)
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_unknown_reference(self, database, paystack_verify):
        from exceptions.payment import PaymentNotFoundException
        with pytest.raises(PaymentNotFoundException):
            await PaymentService.verify_payment("no-such-ref")
        paystack_verify.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reference", [None, "", "   ", 42])
    async def test_missing_reference(self, database, reference):
        from exceptions.base import InvalidRequestException
        with pytest.raises(InvalidRequestException, match="reference is required"):
            await PaymentService.verify_payment(reference)


class TestReinitialize:

    @pytest.mark.asyncio
    async def test_reuses_open_reference(self, customer, pending_order, paystack_init):
        paystack_init.reset_mock()

        view = await PaymentService.reinitialize(pending_order.order_id, customer, "https://shop.test/thanks")

        assert view.reference == pending_order.payment_reference
        assert view.authorization_url is not None
        assert view.total_kobo == pending_order.total_kobo
        kwargs = paystack_init.call_args.kwargs
        assert kwargs["reference"] == pending_order.payment_reference
        assert kwargs["callback_url"] == "https://shop.test/thanks"
        assert kwargs["email"] == customer.email

    @pytest.mark.asyncio
    async def test_paid_order_reports_already_paid(self, customer, pending_order, paystack_init):
        await PaymentService.confirm_payment(
            pending_order.payment_reference, pending_order.total_kobo, "NGN", PAID_AT, None, "webhook"
        )
        paystack_init.reset_mock()

        view = await PaymentService.reinitialize(pending_order.order_id, customer)

        assert view.already_paid is True
        assert view.authorization_url is None
        paystack_init.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_order(self, session, pending_order):
        from exceptions.order import OrderOwnershipException
        stranger = await create_user(session, "stranger@example.com")

        with pytest.raises(OrderOwnershipException):
            await PaymentService.reinitialize(pending_order.order_id, stranger)

    @pytest.mark.asyncio
    async def test_admin_may_reinitialize(self, admin, pending_order, paystack_init):
        view = await PaymentService.reinitialize(pending_order.order_id, admin)
        assert view.reference == pending_order.payment_reference

    @pytest.mark.asyncio
    async def test_cancelled_order(self, session, customer, pending_order):
        from exceptions.order import InvalidOrderStateException
        await OrderService.cancel_order(pending_order.order_id, customer, session)

        with pytest.raises(InvalidOrderStateException):
            await PaymentService.reinitialize(pending_order.order_id, customer)

    @pytest.mark.asyncio
    async def test_cod_order_rejected(self, session, catalog, customer):
        from exceptions.payment import InvalidPaymentMethodException
        cart, _ = await CartService.get_or_create_cart(customer.id, "browser-key", session)
        await CartService.add_item(cart, catalog.kaftan_variant_id, 1, session)
        result = await CheckoutService.place_order(customer, None, CheckoutRequest.model_validate({
            "paymentMethod": "CASH_ON_DELIVERY",
            "address": {"addressLine1": "12 Allen Avenue"},
        }), session)

        with pytest.raises(InvalidPaymentMethodException):
            await PaymentService.reinitialize(result.order_id, customer)

    @pytest.mark.asyncio
    async def test_unknown_order(self, database, customer):
        from exceptions.order import OrderNotFoundException
        with pytest.raises(OrderNotFoundException):
            await PaymentService.reinitialize("00000000-0000-0000-0000-000000000000", customer)

    @pytest.mark.asyncio
    async def test_missing_order_id(self, database):
        from exceptions.base import InvalidRequestException
        with pytest.raises(InvalidRequestException, match="orderId is required"):
            await PaymentService.reinitialize(None, UserDTO(id="user-1", email="x@example.com"))
