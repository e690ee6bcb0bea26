import logging

from fastapi import APIRouter, Request

from db import get_db_session
from enums.rate_limit_operation import RateLimitOperation
from middleware.rate_limit import check_rate_limit
from models.payment_transaction import PaymentVerificationView
from services.payment import PaymentService
from utils.api_response import api_ok, generate_correlation_id
from utils.error_handler import safe_route
from web.dependencies import get_current_user, get_client_key, read_json_body, require_user

logger = logging.getLogger(__name__)

payment_router = APIRouter(prefix="/api/payments/paystack", tags=["payments"])


async def _verify(request: Request, reference) -> dict:
    async with get_db_session() as session:
        user = await get_current_user(request, session)
    await check_rate_limit(RateLimitOperation.PAYMENT_CHECK, get_client_key(request, user))
    verification: PaymentVerificationView = await PaymentService.verify_payment(reference)
    return verification.model_dump(mode="json", by_alias=True, exclude_none=True)


@payment_router.get("/verify")
@safe_route("Failed to verify payment")
async def verify_payment_get(request: Request):
    """Poll a payment by ``?reference=``; used by the checkout success page."""
    return api_ok(await _verify(request, request.query_params.get("reference")))


@payment_router.post("/verify")
@safe_route("Failed to verify payment")
async def verify_payment_post(request: Request):
    body = await read_json_body(request)
    return api_ok(await _verify(request, body.get("reference")))


@payment_router.post("/initialize")
@safe_route("Failed to initialize Paystack")
async def initialize_payment(request: Request):
    """
    Open a hosted Paystack page for an unpaid order of the caller.

    Request Body:
        {"orderId": "...", "callbackUrl": "..."}
    """
    correlation_id = generate_correlation_id()
    body = await read_json_body(request)

    async with get_db_session() as session:
        user = await require_user(request, session)

    logger.info(f"[{correlation_id}] Paystack initialize: order={body.get('orderId')}, user={user.id}")
    callback_url = body.get("callbackUrl") if isinstance(body.get("callbackUrl"), str) else None
    initialization = await PaymentService.reinitialize(body.get("orderId"), user, callback_url)
    return api_ok(initialization.model_dump(mode="json", by_alias=True, exclude_none=True))
