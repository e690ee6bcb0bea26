import logging
import uuid
from datetime import datetime

import config
from enums.order_status import OrderStatus
from enums.payment_confirmation import PaymentConfirmationOutcome
from enums.payment_method import PaymentMethod
from enums.payment_status import OrderPaymentStatus, PaymentStatus
from exceptions.base import InvalidRequestException
from exceptions.order import OrderNotFoundException, OrderOwnershipException, InvalidOrderStateException
from exceptions.payment import PaymentNotFoundException, PaymentGatewayException, PaymentAmountMismatchException, \
    PaymentCurrencyMismatchException, InvalidPaymentMethodException, MissingPayerEmailException
from models.order import OrderDTO
from models.payment_transaction import PaymentTransactionDTO, PaymentVerificationView, PaymentInitializationView
from models.user import UserDTO
from paystack_api.PaystackApiWrapper import PaystackApiWrapper
from repositories.order import OrderRepository
from repositories.payment_transaction import PaymentTransactionRepository
from services.order import OrderService
from utils.time_utils import utcnow, parse_gateway_datetime
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)


class PaymentService:

    @staticmethod
    async def open_hosted_payment(order: OrderDTO, transaction: PaymentTransactionDTO, email: str,
                                  callback_url: str | None = None) -> str:
        """
        Ask Paystack for a hosted payment page for this transaction.

        The raw request and response are stored on the transaction whatever
        the outcome, for later debugging.

        Raises:
            PaymentGatewayException: call failed, or no authorization_url came back (502)
        """
        response = await PaystackApiWrapper.initialize_transaction(
            email=email,
            amount_kobo=transaction.amount_kobo,
            reference=transaction.reference,
            callback_url=callback_url,
            metadata={"orderId": order.id, "paymentMethod": PaymentMethod.PAYSTACK.value},
        )
        async with TransactionManager.atomic_transaction() as session:
            await PaymentTransactionRepository.store_init_payload(transaction.reference, {
                "request": response.request,
                "httpStatus": response.http_status,
                "response": response.payload,
            }, session)

        if not response.ok:
            raise PaymentGatewayException("Failed to initialize Paystack transaction", 502)
        if not response.authorization_url:
            logger.error(f"❌ Paystack initialize for {transaction.reference} returned no authorization_url")
            raise PaymentGatewayException("Paystack response missing authorization_url", 502)

        logger.info(f"💳 Paystack session opened for order {order.id} (reference {transaction.reference})")
        return response.authorization_url

    @staticmethod
    @TransactionManager.with_retry()
    async def confirm_payment(reference: str, amount_kobo, currency: str | None, paid_at: datetime | None,
                              raw_payload: dict | None, source: str) -> PaymentConfirmationOutcome:
        """
        The one place a payment becomes PAID, shared by the webhook and by verification.

        Safe to call any number of times for the same reference: the
        transaction row moves INITIALIZED -> PAID through a conditional update,
        and only the caller that wins it touches the order and inventory.

        Args:
            reference: gateway reference of the PaymentTransaction
            amount_kobo: amount the gateway says was paid
            currency: currency the gateway reports (missing means the default currency)
            paid_at: gateway payment time (missing means now)
            raw_payload: gateway body, stored on the transaction
            source: "webhook" or "verify", for the logs
        """
        currency = currency or config.DEFAULT_CURRENCY
        paid_at = paid_at or utcnow()

        async with TransactionManager.atomic_transaction() as session:
            transaction = await PaymentTransactionRepository.get_by_reference(reference, session)
            if transaction is None:
                logger.warning(f"⚠️ [{source}] Payment for unknown reference {reference}, stored only")
                return PaymentConfirmationOutcome.UNKNOWN_REFERENCE

            if transaction.status == PaymentStatus.PAID:
                if raw_payload is not None:
                    await PaymentTransactionRepository.store_verify_payload(reference, raw_payload, session)
                logger.info(f"[{source}] Reference {reference} already paid, nothing to do")
                return PaymentConfirmationOutcome.ALREADY_PAID

            if not isinstance(amount_kobo, int) or isinstance(amount_kobo, bool) \
                    or amount_kobo != transaction.amount_kobo:
                logger.error(
                    f"❌ [{source}] Amount mismatch for {reference}: expected {transaction.amount_kobo}, "
                    f"got {amount_kobo}"
                )
                return PaymentConfirmationOutcome.AMOUNT_MISMATCH

            if (transaction.currency or config.DEFAULT_CURRENCY) != currency:
                logger.error(
                    f"❌ [{source}] Currency mismatch for {reference}: expected {transaction.currency}, got {currency}"
                )
                return PaymentConfirmationOutcome.CURRENCY_MISMATCH

            won = await PaymentTransactionRepository.mark_paid_if_initialized(
                reference, paid_at, session, raw_verify_payload=raw_payload
            )
            if not won:
                logger.info(f"[{source}] Reference {reference} confirmed concurrently, skipping")
                return PaymentConfirmationOutcome.ALREADY_PAID

            outcome = await OrderService.apply_payment(transaction.order_id, amount_kobo, paid_at, session)

        logger.info(f"✅ [{source}] Payment {reference} for order {transaction.order_id}: {outcome.value}")
        return outcome

    @staticmethod
    async def verify_payment(reference: str | None) -> PaymentVerificationView:
        """
        Poll Paystack for a reference and confirm it when it succeeded.

        Raises:
            InvalidRequestException: no reference
            ConfigurationException: no secret key
            PaymentNotFoundException: unknown reference (404)
            PaymentGatewayException: Paystack could not be asked (502)
            PaymentAmountMismatchException / PaymentCurrencyMismatchException: 400
        """
        reference = reference.strip() if isinstance(reference, str) else None
        if not reference:
            raise InvalidRequestException("reference is required", field="reference")
        PaystackApiWrapper.get_secret_key()

        async with TransactionManager.atomic_transaction() as session:
            transaction = await PaymentTransactionRepository.get_by_reference(reference, session)
        if transaction is None:
            raise PaymentNotFoundException(reference)

        if transaction.status == PaymentStatus.PAID:
            return PaymentVerificationView(reference=reference, already_paid=True, order_id=transaction.order_id)

        response = await PaystackApiWrapper.verify_transaction(reference)
        if not response.ok:
            raise PaymentGatewayException("Paystack verification failed", 502)

        data = response.data
        gateway_status = data.get("status")
        if gateway_status != "success":
            async with TransactionManager.atomic_transaction() as session:
                await PaymentTransactionRepository.store_verify_payload(reference, response.payload, session)
            logger.info(f"Verification of {reference}: Paystack status {gateway_status}, not paid yet")
            return PaymentVerificationView(
                reference=reference,
                paid=False,
                paystack_status=gateway_status,
                order_id=transaction.order_id,
            )

        amount = data.get("amount")
        currency = data.get("currency") or config.DEFAULT_CURRENCY
        if not isinstance(amount, int) or isinstance(amount, bool) or amount != transaction.amount_kobo:
            raise PaymentAmountMismatchException(reference, transaction.amount_kobo, amount)
        if (transaction.currency or config.DEFAULT_CURRENCY) != currency:
            raise PaymentCurrencyMismatchException(reference, transaction.currency, currency)

        outcome = await PaymentService.confirm_payment(
            reference, amount, currency, parse_gateway_datetime(data.get("paid_at")), response.payload, "verify"
        )
        if outcome == PaymentConfirmationOutcome.ALREADY_PAID:
            return PaymentVerificationView(reference=reference, already_paid=True, order_id=transaction.order_id)
        return PaymentVerificationView(reference=reference, paid=True, order_id=transaction.order_id)

    @staticmethod
    async def reinitialize(order_id, user: UserDTO, callback_url: str | None = None) -> PaymentInitializationView:
        """
        Open (again) a hosted payment page for an unpaid Paystack order.

        The newest INITIALIZED Paystack transaction is reused so the customer
        keeps a single reference; otherwise a new one is created for the
        order total.
        """
        order_id = order_id.strip() if isinstance(order_id, str) else None
        if not order_id:
            raise InvalidRequestException("orderId is required", field="orderId")

        async with TransactionManager.atomic_transaction() as session:
            order = await OrderRepository.get_by_id(order_id, session)
            if order is None:
                raise OrderNotFoundException(order_id)
            if order.user_id != user.id and not user.is_admin:
                raise OrderOwnershipException(order_id, user.id)
            if order.payment_method != PaymentMethod.PAYSTACK:
                raise InvalidPaymentMethodException(order.id, order.payment_method.value)

            if order.payment_status == OrderPaymentStatus.PAID or order.status == OrderStatus.PROCESSING:
                return PaymentInitializationView(order_id=order.id, already_paid=True)
            if order.status != OrderStatus.PENDING_PAYMENT:
                # Cancelled orders no longer hold stock; a payment now would be a late payment
                raise InvalidOrderStateException(order.id, order.status.value, OrderStatus.PROCESSING.value)

            PaystackApiWrapper.get_secret_key()
            if not user.email:
                raise MissingPayerEmailException("User email not found")

            transaction = await PaymentTransactionRepository.get_latest_initialized(
                order.id, PaymentMethod.PAYSTACK, session
            )
            if transaction is None:
                transaction = await PaymentTransactionRepository.create(PaymentTransactionDTO(
                    order_id=order.id,
                    provider=PaymentMethod.PAYSTACK,
                    status=PaymentStatus.INITIALIZED,
                    reference=str(uuid.uuid4()),
                    amount_kobo=order.total_kobo,
                    currency=order.currency or config.DEFAULT_CURRENCY,
                ), session)
                logger.info(f"New Paystack reference {transaction.reference} for order {order.id}")

        authorization_url = await PaymentService.open_hosted_payment(order, transaction, user.email, callback_url)
        return PaymentInitializationView(
            order_id=order.id,
            reference=transaction.reference,
            authorization_url=authorization_url,
            total_kobo=order.total_kobo,
        )
