"""
Admin order API.

Orders are addressed either by full UUID or by the 8-character order number
shown to customers. Every route requires an ADMIN session; anyone else gets
403.
"""
import logging

from fastapi import APIRouter, Request

from db import get_db_session
from services.order import OrderService
from utils.api_response import api_ok, generate_correlation_id
from utils.error_handler import safe_route
from web.dependencies import require_admin, read_json_body

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/api/admin", tags=["admin"])

MAX_PAGE_SIZE = 200


def _int_param(value: str | None, default: int, minimum: int, maximum: int | None = None) -> int:
    try:
        parsed = int(value) if value is not None else default
    except ValueError:
        parsed = default
    parsed = max(minimum, parsed)
    return min(parsed, maximum) if maximum is not None else parsed


@admin_router.get("/orders")
@safe_route("Failed to fetch orders")
async def list_orders(request: Request):
    """
    Paginated order list, newest first.

    Query: ?limit=50&offset=0&status=PENDING_PAYMENT
    """
    limit = _int_param(request.query_params.get("limit"), 50, 1, MAX_PAGE_SIZE)
    offset = _int_param(request.query_params.get("offset"), 0, 0)
    async with get_db_session() as session:
        await require_admin(request, session)
        orders, total = await OrderService.admin_list_orders(
            session, limit=limit, offset=offset, status=request.query_params.get("status")
        )
    return api_ok({"results": orders, "total": total, "limit": limit, "offset": offset})


@admin_router.get("/orders/{order_ref}")
@safe_route("Failed to fetch order")
async def get_order(order_ref: str, request: Request):
    async with get_db_session() as session:
        await require_admin(request, session)
        order = await OrderService.admin_get_order(order_ref, session)
    return api_ok(order)


@admin_router.patch("/orders/{order_ref}/status")
@safe_route("Failed to update order status")
async def update_order_status(order_ref: str, request: Request):
    """
    Move an order through its lifecycle.

    Request Body:
        {"status": "PROCESSING" | "SHIPPED" | "DELIVERED" | "CANCELLED"}
    """
    correlation_id = generate_correlation_id()
    body = await read_json_body(request)
    async with get_db_session() as session:
        admin = await require_admin(request, session)
        logger.info(f"[{correlation_id}] Admin {admin.id} sets order {order_ref} to {body.get('status')}")
        order = await OrderService.admin_update_status(order_ref, body.get("status"), admin, session)
    logger.info(f"[{correlation_id}] ✅ Order {order.order_number} is now {order.status.value}")
    return api_ok(order)
