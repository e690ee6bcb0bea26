import logging

from fastapi import APIRouter, Request

from db import get_db_session
from services.order import OrderService
from utils.api_response import api_ok, generate_correlation_id
from utils.error_handler import safe_route
from web.dependencies import require_user

logger = logging.getLogger(__name__)

order_router = APIRouter(prefix="/api/orders", tags=["orders"])


@order_router.get("")
@safe_route("Failed to fetch orders")
async def list_orders(request: Request):
    async with get_db_session() as session:
        user = await require_user(request, session)
        orders = await OrderService.list_user_orders(user.id, session)
    return api_ok(orders)


@order_router.post("/{order_id}/cancel")
@safe_route("Failed to cancel order")
async def cancel_order(order_id: str, request: Request):
    """Customer cancels an unpaid order; its reserved stock is released."""
    correlation_id = generate_correlation_id()
    async with get_db_session() as session:
        user = await require_user(request, session)
        logger.info(f"[{correlation_id}] Cancel requested: order={order_id}, user={user.id}")
        order = await OrderService.cancel_order(order_id, user, session)
        order_view = await OrderService.get_order_view(order, session)
    logger.info(f"[{correlation_id}] ✅ Order {order_id} cancelled by customer")
    return api_ok(order_view)
