import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.inventory_state import InventoryState
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import OrderPaymentStatus, PaymentStatus
from exceptions.cart import EmptyCartException, InvalidCartStateException, InvalidQuantityException
from exceptions.order import InsufficientStockException
from exceptions.payment import MissingPayerEmailException
from exceptions.shipping import InvalidAddressException, MissingShippingAddressException
from models.address import AddressSnapshot
from models.cart import CartDTO
from models.checkout import CheckoutRequest, CheckoutContextView, CheckoutCartSummary, CheckoutResult
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from models.payment_transaction import PaymentTransactionDTO
from models.shipping_method import ShippingMethodDTO
from models.user import UserDTO
from paystack_api.PaystackApiWrapper import PaystackApiWrapper
from repositories.address import AddressRepository
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.inventory import InventoryRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.payment_transaction import PaymentTransactionRepository
from repositories.shipping_method import ShippingMethodRepository
from services.cart import CartService
from services.catalog import CatalogService
from services.payment import PaymentService
from utils.quantity import validate_line_quantity, line_total_kobo
from utils.transaction_manager import TransactionManager

logger = logging.getLogger(__name__)

COD_MESSAGE = "Order created. Pay on Delivery will be handled at delivery time."


def _clean_string(value) -> str | None:
    """Trimmed non-empty string, anything else is treated as absent."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


class CheckoutService:

    @staticmethod
    async def get_context(user: UserDTO | None, guest_key: str | None,
                          session: AsyncSession | Session) -> CheckoutContextView:
        """Cart summary, active shipping methods and saved addresses for the checkout page."""
        user_id = user.id if user else None
        shipping_methods = await ShippingMethodRepository.get_active(session)
        addresses = await AddressRepository.get_by_user(user_id, session) if user_id else []

        cart = await CartService.get_active_cart(user_id, guest_key, session)
        cart_summary = None
        if cart is not None:
            cart_view = await CartService.get_cart_view(cart, session)
            cart_summary = CheckoutCartSummary(
                id=cart.id,
                currency=cart.currency,
                subtotal_kobo=cart_view.subtotal_kobo,
                items_count=len(cart_view.items),
            )
        return CheckoutContextView(cart=cart_summary, shipping_methods=shipping_methods, addresses=addresses)

    @staticmethod
    async def _build_address_snapshot(user: UserDTO | None, request: CheckoutRequest,
                                      session: AsyncSession | Session) -> dict:
        """
        Saved address of the logged-in user, or the inline address of the request.

        Raises:
            InvalidAddressException: addressId is not an active address of this user
            MissingShippingAddressException: inline address without addressLine1
        """
        address_id = _clean_string(request.address_id)
        if user is not None and address_id:
            address = await AddressRepository.get_for_user(address_id, user.id, session)
            if address is None:
                raise InvalidAddressException(address_id)
            snapshot = AddressSnapshot.model_validate(address.model_dump())
            return snapshot.model_dump(by_alias=True)

        raw = request.address if isinstance(request.address, dict) else {}
        address_line1 = _clean_string(raw.get("addressLine1"))
        if not address_line1:
            raise MissingShippingAddressException()
        snapshot = AddressSnapshot(
            full_name=_clean_string(raw.get("fullName")),
            phone=_clean_string(raw.get("phone")),
            country=(_clean_string(raw.get("country")) or config.DEFAULT_COUNTRY).upper(),
            state=_clean_string(raw.get("state")),
            city=_clean_string(raw.get("city")),
            address_line1=address_line1,
            address_line2=_clean_string(raw.get("addressLine2")),
            landmark=_clean_string(raw.get("landmark")),
            postal_code=_clean_string(raw.get("postalCode")),
        )
        return snapshot.model_dump(by_alias=True, exclude={"id", "label"})

    @staticmethod
    def _resolve_payer_email(user: UserDTO | None, request: CheckoutRequest,
                             payment_method: PaymentMethod) -> str | None:
        email = user.email if user is not None else _clean_string(request.email)
        if payment_method == PaymentMethod.PAYSTACK and not email:
            raise MissingPayerEmailException()
        return email

    @staticmethod
    async def _price_cart(cart: CartDTO, session: AsyncSession | Session) -> tuple[list[OrderItemDTO], int]:
        """
        Re-validate every cart line against the current catalog and stock and
        turn it into an order item snapshot.

        Returns:
            (order items, subtotal in kobo); items whose stock must be reserved
            carry reserved=True
        """
        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        if not cart_items:
            raise EmptyCartException(cart.id)
        contexts = await CatalogService.get_variant_contexts([item.variant_id for item in cart_items], session)

        order_items = []
        subtotal_kobo = 0
        for cart_item in cart_items:
            context = contexts.get(cart_item.variant_id)
            if context is None or not context.variant.is_active:
                raise InvalidCartStateException("Cart contains inactive item", cart_id=cart.id)
            if cart_item.quantity is None or cart_item.quantity <= 0:
                raise InvalidQuantityException("Invalid quantity in cart", quantity=cart_item.quantity)

            validate_line_quantity(
                cart_item.quantity, context.product.type, context.variant.min_qty, context.variant.qty_step,
                whole_number_message="Non-fabric items must use whole-number quantity"
            )
            if not context.has_stock_for(cart_item.quantity):
                raise InsufficientStockException(context.product.title, cart_item.quantity, context.available)

            line_total = line_total_kobo(context.variant.price_kobo, cart_item.quantity)
            subtotal_kobo += line_total
            meta = dict(cart_item.meta or {})
            if cart_item.attached_to_cart_item_id:
                meta["attachedToCartItemId"] = cart_item.attached_to_cart_item_id
            order_items.append(OrderItemDTO(
                product_id=context.product.id,
                variant_id=context.variant.id,
                product_type=context.product.type,
                title=context.product.title,
                sku=context.variant.sku,
                quantity=cart_item.quantity,
                unit_price_kobo=context.variant.price_kobo,
                line_total_kobo=line_total,
                reserved=context.is_stock_tracked,
                meta=meta or None,
            ))
        return order_items, subtotal_kobo

    @staticmethod
    @TransactionManager.with_retry()
    async def _create_order(cart: CartDTO, order_dto: OrderDTO, order_items: list[OrderItemDTO],
                            reference: str) -> tuple[OrderDTO, PaymentTransactionDTO]:
        """
        Reserve stock, write the order, close the cart and open the payment
        transaction as one unit of work.

        Raises:
            InsufficientStockException: a conditional reservation lost the race;
                nothing of the order is kept
            InvalidCartStateException: another checkout already closed this cart
        """
        async with TransactionManager.atomic_transaction() as session:
            if not await CartRepository.close_for_order(cart.id, session):
                logger.warning(f"⚠️ Cart {cart.id} was already checked out")
                raise InvalidCartStateException("Cart has already been checked out", cart_id=cart.id)

            for order_item in order_items:
                if not order_item.reserved:
                    continue
                reserved = await InventoryRepository.reserve(order_item.variant_id, order_item.quantity, session)
                if not reserved:
                    logger.warning(
                        f"⚠️ Reservation failed for variant {order_item.variant_id} "
                        f"qty {order_item.quantity} (cart {cart.id})"
                    )
                    raise InsufficientStockException(order_item.title, order_item.quantity)

            order = await OrderRepository.create(order_dto, session)
            for order_item in order_items:
                order_item.order_id = order.id
            await OrderItemRepository.create_many(order_items, session)

            transaction = await PaymentTransactionRepository.create(PaymentTransactionDTO(
                order_id=order.id,
                provider=order.payment_method,
                status=PaymentStatus.INITIALIZED,
                reference=reference,
                amount_kobo=order.total_kobo,
                currency=order.currency,
            ), session)
        return order, transaction

    @staticmethod
    async def place_order(user: UserDTO | None, guest_key: str | None, request: CheckoutRequest,
                          session: AsyncSession | Session) -> CheckoutResult:
        """
        Turn the active cart into an order.

        Validation happens first against the request session; the order itself
        is written in a separate retried transaction that reserves stock with
        conditional updates. A Paystack order then gets its hosted payment page;
        when that call fails the order stays PENDING_PAYMENT and can be paid
        later through re-initialization.

        Raises:
            EmptyCartException, InvalidAddressException, MissingShippingAddressException,
            MissingPayerEmailException, InvalidCartStateException, InvalidQuantityException,
            InsufficientStockException: 400
            ConfigurationException: Paystack secret missing
            PaymentGatewayException: hosted page could not be opened (502)
        """
        user_id = user.id if user else None
        cart = await CartService.get_active_cart(user_id, guest_key, session)
        if cart is None:
            raise EmptyCartException()

        payment_method = PaymentMethod.from_payload(request.payment_method)
        if payment_method == PaymentMethod.PAYSTACK:
            # Fail before any stock is reserved
            PaystackApiWrapper.get_secret_key()

        shipping_method: ShippingMethodDTO | None = None
        shipping_method_id = _clean_string(request.shipping_method_id)
        if shipping_method_id:
            shipping_method = await ShippingMethodRepository.get_active_by_id(shipping_method_id, session)
        shipping_kobo = shipping_method.fee_kobo if shipping_method else 0

        address_snapshot = await CheckoutService._build_address_snapshot(user, request, session)
        payer_email = CheckoutService._resolve_payer_email(user, request, payment_method)
        order_items, subtotal_kobo = await CheckoutService._price_cart(cart, session)
        total_kobo = subtotal_kobo + shipping_kobo

        reference = str(uuid.uuid4())
        if payment_method == PaymentMethod.CASH_ON_DELIVERY:
            reference = f"cod_{reference}"

        order_dto = OrderDTO(
            user_id=user_id,
            status=OrderStatus.PENDING_PAYMENT,
            payment_method=payment_method,
            payment_status=OrderPaymentStatus.UNPAID,
            inventory_state=InventoryState.RESERVED if any(item.reserved for item in order_items)
            else InventoryState.NONE,
            currency=cart.currency or config.DEFAULT_CURRENCY,
            subtotal_kobo=subtotal_kobo,
            shipping_kobo=shipping_kobo,
            total_kobo=total_kobo,
            amount_paid_kobo=0,
            shipping_method_id=shipping_method.id if shipping_method else None,
            address_snapshot=address_snapshot,
            shipping_method_snapshot={
                "id": shipping_method.id,
                "name": shipping_method.name,
                "feeKobo": shipping_method.fee_kobo,
            } if shipping_method else None,
            email=payer_email,
            notes=_clean_string(request.notes),
        )

        order, transaction = await CheckoutService._create_order(cart, order_dto, order_items, reference)
        logger.info(
            f"✅ Order {order.id} created ({payment_method.value}, {total_kobo} kobo, "
            f"{len(order_items)} lines, inventory {order.inventory_state.value})"
        )

        if payment_method == PaymentMethod.CASH_ON_DELIVERY:
            return CheckoutResult(
                order_id=order.id,
                payment_method=payment_method,
                payment_reference=transaction.reference,
                total_kobo=total_kobo,
                message=COD_MESSAGE,
            )

        authorization_url = await PaymentService.open_hosted_payment(
            order, transaction, payer_email, _clean_string(request.callback_url)
        )
        return CheckoutResult(
            order_id=order.id,
            payment_method=payment_method,
            payment_reference=transaction.reference,
            total_kobo=total_kobo,
            authorization_url=authorization_url,
        )
