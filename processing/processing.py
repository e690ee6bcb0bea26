import json
import logging

from fastapi import APIRouter, Request
from sqlalchemy.exc import IntegrityError

from db import get_db_session, session_commit, session_rollback
from enums.payment_method import PaymentMethod
from exceptions.payment import InvalidWebhookSignatureException
from paystack_api.PaystackApiWrapper import PaystackApiWrapper
from repositories.webhook_event import WebhookEventRepository
from services.payment import PaymentService
from utils.api_response import api_ok, api_error, generate_correlation_id
from utils.time_utils import parse_gateway_datetime

logger = logging.getLogger(__name__)

processing_router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

EVENT_ID_MAX_LENGTH = 160
IGNORED_OUTCOME = "IGNORED"
ERROR_OUTCOME = "ERROR"


def __security_check(x_signature_header: str | None, payload: bytes):
    """
    Validate the HMAC-SHA512 signature Paystack puts on every webhook.

    Raises:
        ConfigurationException: no secret key configured (500)
        InvalidWebhookSignatureException: header missing or wrong (400)
    """
    PaystackApiWrapper.get_secret_key()
    if not x_signature_header:
        logger.warning("Paystack webhook rejected: missing x-paystack-signature header")
        raise InvalidWebhookSignatureException("Missing x-paystack-signature")
    if not PaystackApiWrapper.verify_signature(payload, x_signature_header):
        logger.error("❌ WEBHOOK SECURITY CHECK FAILED - Invalid HMAC signature")
        raise InvalidWebhookSignatureException()


def build_event_id(event_type: str | None, reference: str | None, transaction_id) -> str:
    """Deterministic dedup key of a delivery: the same event for the same charge always maps to one row."""
    event_type = event_type or "unknown"
    reference = reference or "no_ref"
    transaction_id = transaction_id if transaction_id not in (None, "") else "no_id"
    return f"{event_type}:{reference}:{transaction_id}"[:EVENT_ID_MAX_LENGTH]


async def _mark_processed(webhook_event_id: str, outcome: str) -> None:
    async with get_db_session() as session:
        await WebhookEventRepository.mark_processed(webhook_event_id, outcome, session)
        await session_commit(session)


@processing_router.post("/paystack")
async def paystack_event(request: Request):
    """
    Webhook endpoint for Paystack events.

    Every verified delivery is stored first; the unique (provider, event_id)
    pair turns redeliveries into acknowledged duplicates. Only charge.success
    is acted on, through the same confirmation routine as verification.
    Processing failures are still answered 200 so Paystack does not retry
    in a loop; they are visible in the logs and in the stored outcome.
    """
    correlation_id = generate_correlation_id()
    request_body = await request.body()

    __security_check(request.headers.get("x-paystack-signature"), request_body)

    try:
        payload = json.loads(request_body)
    except ValueError:
        return api_error("Invalid JSON payload", 400)
    if not isinstance(payload, dict):
        return api_error("Invalid JSON payload", 400)

    event_type = payload.get("event") if isinstance(payload.get("event"), str) else None
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    reference = data.get("reference") if isinstance(data.get("reference"), str) else None
    event_id = build_event_id(event_type, reference, data.get("id"))

    logger.debug(f"[{correlation_id}] 🔔 Paystack webhook: event={event_type}, reference={reference}")

    # Idempotency gate
    async with get_db_session() as session:
        try:
            webhook_event = await WebhookEventRepository.create(
                PaymentMethod.PAYSTACK.value, event_id, session,
                event_type=event_type or "unknown", reference=reference, payload=payload,
            )
            await session_commit(session)
        except IntegrityError:
            await session_rollback(session)
            logger.info(f"[{correlation_id}] Duplicate Paystack webhook {event_id}, acknowledged")
            return api_ok(received=True, duplicate=True)
        except Exception as e:
            await session_rollback(session)
            logger.error(f"[{correlation_id}] Failed to store webhook event {event_id}: {e}", exc_info=True)
            return api_error("Failed to store webhook event", 500)

    if event_type != "charge.success":
        await _mark_processed(webhook_event.id, IGNORED_OUTCOME)
        return api_ok(received=True, ignored=True)

    if not reference:
        await _mark_processed(webhook_event.id, IGNORED_OUTCOME)
        return api_ok(received=True, ignored=True, reason="missing_reference")

    status = data.get("status") or ""
    if status and status != "success":
        await _mark_processed(webhook_event.id, IGNORED_OUTCOME)
        return api_ok(received=True, ignored=True, reason="not_success_status")

    try:
        outcome = await PaymentService.confirm_payment(
            reference,
            data.get("amount"),
            data.get("currency"),
            parse_gateway_datetime(data.get("paid_at")),
            payload,
            "webhook",
        )
    except Exception as e:
        logger.error(f"[{correlation_id}] ❌ Webhook processing failed for {reference}: {e}", exc_info=True)
        await _mark_processed(webhook_event.id, ERROR_OUTCOME)
        return api_ok(received=True, processed=False)

    await _mark_processed(webhook_event.id, outcome.value)
    logger.info(f"[{correlation_id}] Webhook {event_id} processed: {outcome.value}")
    return api_ok(received=True, processed=True)
