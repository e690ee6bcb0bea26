import logging
import re
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from enums.inventory_state import InventoryState
from enums.order_status import OrderStatus
from enums.payment_confirmation import PaymentConfirmationOutcome
from enums.payment_method import PaymentMethod
from enums.payment_status import OrderPaymentStatus
from enums.transition_actor import TransitionActor
from exceptions.base import InvalidRequestException
from exceptions.order import OrderNotFoundException, InvalidOrderIdException, InvalidOrderStateException, \
    OrderOwnershipException
from models.order import OrderDTO, OrderView, OrderItemView, PaymentView, AdminOrderListView
from models.orderItem import OrderItemDTO
from models.user import UserDTO
from repositories.inventory import InventoryRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.payment_transaction import PaymentTransactionRepository
from repositories.user import UserRepository
from utils.order_state_machine import OrderStateMachine, InventoryEffect
from utils.time_utils import utcnow

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
SHORT_CODE_PATTERN = re.compile(r"^[0-9a-fA-F]{8}$")

# Timestamp column set when an order enters a status
STATUS_TIMESTAMPS = {
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


class OrderService:

    @staticmethod
    async def _apply_inventory_effect(order: OrderDTO, effect: InventoryEffect,
                                      session: AsyncSession | Session) -> InventoryState | None:
        """
        Move the reserved lines of an order through the inventory ledger.

        Each effect only applies from the matching inventory_state, so running
        it twice never counts the same stock twice.

        Returns:
            The new inventory_state, or None when nothing changed
        """
        if effect == InventoryEffect.COMMIT and order.inventory_state == InventoryState.RESERVED:
            operation, new_state = InventoryRepository.commit_reserved, InventoryState.COMMITTED
        elif effect == InventoryEffect.RELEASE and order.inventory_state == InventoryState.RESERVED:
            operation, new_state = InventoryRepository.release, InventoryState.RELEASED
        elif effect == InventoryEffect.RESTOCK and order.inventory_state == InventoryState.COMMITTED:
            operation, new_state = InventoryRepository.restock, InventoryState.RESTOCKED
        else:
            return None

        order_items = await OrderItemRepository.get_by_order_id(order.id, session)
        for order_item in order_items:
            if not order_item.reserved or order_item.variant_id is None:
                continue
            applied = await operation(order_item.variant_id, order_item.quantity, session)
            if not applied:
                # Ledger drifted (row deleted or edited by hand); keep going so the order still moves
                logger.error(
                    f"❌ Inventory {effect.value} skipped for order {order.id} variant {order_item.variant_id} "
                    f"qty {order_item.quantity}: guard failed"
                )

        await OrderRepository.update(order.id, {"inventory_state": new_state}, session)
        logger.info(f"📦 Order {order.id} inventory {order.inventory_state.value} -> {new_state.value}")
        return new_state

    @staticmethod
    async def _collect_cash_on_delivery(order: OrderDTO, session: AsyncSession | Session) -> dict:
        """Mark a COD order as paid when it is delivered."""
        if order.payment_method != PaymentMethod.CASH_ON_DELIVERY or order.payment_status == OrderPaymentStatus.PAID:
            return {}
        paid_at = utcnow()
        transaction = await PaymentTransactionRepository.get_latest_initialized(
            order.id, PaymentMethod.CASH_ON_DELIVERY, session
        )
        if transaction is not None:
            await PaymentTransactionRepository.mark_paid_if_initialized(transaction.reference, paid_at, session)
        logger.info(f"💵 Cash collected for order {order.id} ({order.total_kobo} kobo)")
        return {
            "payment_status": OrderPaymentStatus.PAID,
            "amount_paid_kobo": order.total_kobo,
            "paid_at": paid_at,
        }

    @staticmethod
    async def transition(order: OrderDTO, to_status: OrderStatus, actor: TransitionActor,
                         session: AsyncSession | Session, actor_id: str | None = None,
                         reason: str | None = None) -> OrderDTO:
        """
        Move an order to a new status and apply the inventory effect of the move.

        Does not commit; callers own the transaction.

        Raises:
            InvalidOrderStateException: transition not allowed for this actor, or the
                order changed status under us
        """
        transition = OrderStateMachine.validate_and_log_transition(
            order.id, order.status, to_status, actor, actor_id
        )
        if transition is None:
            return order

        if (to_status == OrderStatus.PROCESSING and actor == TransitionActor.ADMIN
                and order.payment_method == PaymentMethod.PAYSTACK
                and order.payment_status != OrderPaymentStatus.PAID):
            # Paystack orders only leave PENDING_PAYMENT through a confirmed payment
            raise InvalidOrderStateException(order.id, order.status.value, to_status.value)

        values = {"status": to_status}
        timestamp_column = STATUS_TIMESTAMPS.get(to_status)
        if timestamp_column:
            values[timestamp_column] = utcnow()
        if to_status == OrderStatus.CANCELLED and reason:
            values["cancellation_reason"] = reason
        if transition.effect == InventoryEffect.COLLECT_COD:
            values.update(await OrderService._collect_cash_on_delivery(order, session))

        moved = await OrderRepository.transition(order.id, order.status, values, session)
        if not moved:
            current = await OrderRepository.get_by_id(order.id, session)
            current_status = current.status.value if current else "UNKNOWN"
            logger.warning(f"⚠️ Order {order.id} changed concurrently ({order.status.value} -> {current_status})")
            raise InvalidOrderStateException(order.id, current_status, to_status.value)

        await OrderService._apply_inventory_effect(order, transition.effect, session)
        return await OrderRepository.get_by_id(order.id, session)

    @staticmethod
    async def apply_payment(order_id: str, amount_kobo: int, paid_at: datetime,
                            session: AsyncSession | Session) -> PaymentConfirmationOutcome:
        """
        Record a confirmed payment on the order (the transaction row already moved to PAID).

        A pending order moves to PROCESSING and its reservation is committed.
        A cancelled order stays cancelled: the money arrived too late and has
        to be refunded by hand.
        """
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            logger.error(f"❌ Payment confirmed for missing order {order_id}")
            return PaymentConfirmationOutcome.UNKNOWN_REFERENCE

        await OrderRepository.update(order.id, {
            "payment_status": OrderPaymentStatus.PAID,
            "amount_paid_kobo": amount_kobo,
            "paid_at": paid_at,
        }, session)

        if order.status == OrderStatus.PENDING_PAYMENT:
            await OrderService.transition(order, OrderStatus.PROCESSING, TransitionActor.SYSTEM, session)
            return PaymentConfirmationOutcome.CONFIRMED

        if order.status == OrderStatus.CANCELLED:
            logger.critical(
                f"🚨 LATE PAYMENT: order {order.id} was cancelled before payment of {amount_kobo} kobo arrived. "
                f"Manual refund required."
            )
            return PaymentConfirmationOutcome.LATE_PAYMENT

        logger.info(f"Payment recorded for order {order.id} already in {order.status.value}")
        return PaymentConfirmationOutcome.CONFIRMED

    @staticmethod
    async def cancel_order(order_id: str, user: UserDTO, session: AsyncSession | Session) -> OrderDTO:
        """Customer cancels one of their own unpaid orders."""
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        if order.user_id != user.id:
            raise OrderOwnershipException(order_id, user.id)
        if order.payment_status == OrderPaymentStatus.PAID:
            raise InvalidOrderStateException(order.id, order.status.value, OrderStatus.CANCELLED.value)

        order = await OrderService.transition(
            order, OrderStatus.CANCELLED, TransitionActor.CUSTOMER, session,
            actor_id=user.id, reason="Cancelled by customer"
        )
        await session_commit(session)
        return order

    @staticmethod
    async def expire_stale_orders(cutoff: datetime, session: AsyncSession | Session) -> int:
        """
        Cancel unpaid Paystack orders created before the cutoff and release their stock.

        Each order is committed on its own; an order that fails is rolled back,
        logged and retried on the next cycle while the rest still expire.
        """
        orders = await OrderRepository.get_expired_pending(cutoff, session)
        expired = 0
        for order in orders:
            try:
                await OrderService.transition(order, OrderStatus.CANCELLED, TransitionActor.SYSTEM, session,
                                              reason="Payment timeout")
                await session_commit(session)
                expired += 1
            except InvalidOrderStateException:
                # Paid or cancelled between the query and the update
                await session_rollback(session)
                logger.info(f"Order {order.id} no longer pending, skipping expiry")
            except Exception as e:
                await session_rollback(session)
                logger.error(f"Failed to expire order {order.id}: {e}", exc_info=True)
        if expired:
            logger.info(f"⏰ Expired {expired} unpaid order(s) created before {cutoff.isoformat()}")
        return expired

    @staticmethod
    def _to_item_view(order_item: OrderItemDTO) -> OrderItemView:
        return OrderItemView(
            id=order_item.id,
            product_id=order_item.product_id,
            variant_id=order_item.variant_id,
            product_type=order_item.product_type,
            title=order_item.title,
            sku=order_item.sku,
            quantity=order_item.quantity,
            unit_price_kobo=order_item.unit_price_kobo,
            line_total_kobo=order_item.line_total_kobo,
            meta=order_item.meta,
        )

    @staticmethod
    def _to_order_view(order: OrderDTO, order_items: list[OrderItemDTO],
                       payments: list[PaymentView] | None = None) -> OrderView:
        return OrderView(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            currency=order.currency,
            subtotal_kobo=order.subtotal_kobo,
            shipping_kobo=order.shipping_kobo,
            total_kobo=order.total_kobo,
            amount_paid_kobo=order.amount_paid_kobo,
            address_snapshot=order.address_snapshot,
            shipping_method_snapshot=order.shipping_method_snapshot,
            email=order.email,
            notes=order.notes,
            created_at=order.created_at,
            paid_at=order.paid_at,
            cancelled_at=order.cancelled_at,
            items=[OrderService._to_item_view(order_item) for order_item in order_items],
            payments=payments,
        )

    @staticmethod
    async def list_user_orders(user_id: str, session: AsyncSession | Session) -> list[OrderView]:
        orders = await OrderRepository.get_by_user_id(user_id, session)
        items = await OrderItemRepository.get_by_order_ids([order.id for order in orders], session)
        return [OrderService._to_order_view(order, items.get(order.id, [])) for order in orders]

    @staticmethod
    async def get_order_view(order: OrderDTO, session: AsyncSession | Session) -> OrderView:
        order_items = await OrderItemRepository.get_by_order_id(order.id, session)
        return OrderService._to_order_view(order, order_items)

    @staticmethod
    def _format_naira(total_kobo: int) -> str:
        return f"{(Decimal(total_kobo) / 100).quantize(Decimal('0.01'))}"

    @staticmethod
    async def admin_list_orders(session: AsyncSession | Session, limit: int = 50, offset: int = 0,
                                status: str | None = None) -> tuple[list[AdminOrderListView], int]:
        status_filter = OrderStatus(status) if status in OrderStatus._value2member_map_ else None
        orders, total = await OrderRepository.get_paginated(session, limit=limit, offset=offset, status=status_filter)

        order_ids = [order.id for order in orders]
        item_counts = await OrderItemRepository.count_by_order_ids(order_ids, session)
        users = await UserRepository.get_by_ids([order.user_id for order in orders if order.user_id], session)

        views = []
        for order in orders:
            user = users.get(order.user_id) if order.user_id else None
            snapshot_name = (order.address_snapshot or {}).get("fullName")
            views.append(AdminOrderListView(
                id=order.id,
                order_number=order.order_number,
                status=order.status,
                payment_method=order.payment_method,
                payment_status=order.payment_status,
                total=OrderService._format_naira(order.total_kobo),
                total_kobo=order.total_kobo,
                currency=order.currency,
                customer_email=user.email if user else order.email,
                customer_name=(user.full_name if user else None) or snapshot_name,
                items_count=item_counts.get(order.id, 0),
                created_at=order.created_at,
            ))
        return views, total

    @staticmethod
    async def resolve_order_ref(order_ref: str | None, session: AsyncSession | Session) -> OrderDTO:
        """
        Look an order up by full UUID or by its 8-hex short code.

        Raises:
            InvalidRequestException: empty reference
            InvalidOrderIdException: neither a UUID nor a short code
            OrderNotFoundException: no such order
        """
        order_ref = (order_ref or "").strip()
        if not order_ref:
            raise InvalidRequestException("Missing order id", field="id")
        if UUID_PATTERN.match(order_ref):
            order = await OrderRepository.get_by_id(order_ref.lower(), session)
        elif SHORT_CODE_PATTERN.match(order_ref):
            order = await OrderRepository.get_by_short_code(order_ref, session)
        else:
            raise InvalidOrderIdException(order_ref)
        if order is None:
            raise OrderNotFoundException(order_ref)
        return order

    @staticmethod
    async def admin_get_order(order_ref: str, session: AsyncSession | Session) -> OrderView:
        order = await OrderService.resolve_order_ref(order_ref, session)
        order_items = await OrderItemRepository.get_by_order_id(order.id, session)
        transactions = await PaymentTransactionRepository.get_by_order_id(order.id, session)
        payments = [PaymentView.model_validate(transaction, from_attributes=True) for transaction in transactions]
        return OrderService._to_order_view(order, order_items, payments)

    @staticmethod
    async def admin_update_status(order_ref: str, status, admin: UserDTO,
                                  session: AsyncSession | Session) -> OrderView:
        if status not in OrderStatus._value2member_map_:
            raise InvalidRequestException("Invalid status", field="status")
        order = await OrderService.resolve_order_ref(order_ref, session)
        await OrderService.transition(
            order, OrderStatus(status), TransitionActor.ADMIN, session,
            actor_id=admin.id, reason="Cancelled by admin"
        )
        await session_commit(session)
        return await OrderService.admin_get_order(order.id, session)
