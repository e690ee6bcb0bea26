import logging

from fastapi import APIRouter, Request

from db import get_db_session
from enums.rate_limit_operation import RateLimitOperation
from middleware.rate_limit import check_rate_limit
from models.checkout import CheckoutRequest
from services.checkout import CheckoutService
from utils.api_response import api_ok, generate_correlation_id
from utils.error_handler import safe_route
from web.dependencies import get_current_user, get_guest_key, get_client_key, read_model_body

logger = logging.getLogger(__name__)

checkout_router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@checkout_router.get("")
@safe_route("Failed to load checkout context")
async def get_checkout_context(request: Request):
    async with get_db_session() as session:
        user = await get_current_user(request, session)
        context = await CheckoutService.get_context(user, get_guest_key(request), session)
    return api_ok(context)


@checkout_router.post("")
@safe_route("Checkout failed")
async def place_order(request: Request):
    """
    Place an order from the active cart.

    Request Body:
        {
            "paymentMethod": "PAYSTACK" | "CASH_ON_DELIVERY",
            "addressId": "...",            # saved address (logged-in users)
            "address": {...},              # or an inline address
            "email": "...",                # guests paying with Paystack
            "shippingMethodId": "...",
            "notes": "..."
        }

    Returns 201 with the order id, payment reference and total, plus the
    Paystack authorizationUrl for hosted payments.
    """
    correlation_id = generate_correlation_id()
    checkout_request = await read_model_body(request, CheckoutRequest)

    async with get_db_session() as session:
        user = await get_current_user(request, session)
        await check_rate_limit(RateLimitOperation.CART_CHECKOUT, get_client_key(request, user))
        logger.info(
            f"[{correlation_id}] Checkout started: user={user.id if user else 'guest'}, "
            f"payment_method={checkout_request.payment_method}"
        )
        result = await CheckoutService.place_order(user, get_guest_key(request), checkout_request, session)

    logger.info(f"[{correlation_id}] ✅ Order {result.order_id} placed ({result.payment_method.value})")
    return api_ok(result, status_code=201)
