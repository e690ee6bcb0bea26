"""
Paystack Webhook Tests

Tests the webhook endpoint through the ASGI app:
- Signature checks (missing, wrong, correct)
- Deduplication of redelivered events
- Ignored events and their recorded outcome
- charge.success confirming the order

Run with:
    pytest tests/payment/unit/test_paystack_webhook.py -v
"""

import hashlib
import hmac
import json
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import select

import config
from conftest import get_inventory, get_order
from db import get_db_session
from enums.order_status import OrderStatus
from models.webhook_event import WebhookEvent
from processing.processing import build_event_id

WEBHOOK_URL = "/api/webhooks/paystack"


def signed_request(payload) -> tuple[bytes, dict]:
    body = json.dumps(payload).encode() if not isinstance(payload, bytes) else payload
    signature = hmac.new(config.PAYSTACK_SECRET_KEY.encode(), body, hashlib.sha512).hexdigest()
    return body, {"x-paystack-signature": signature, "content-type": "application/json"}


def charge_success(reference: str, amount: int, status: str = "success", transaction_id: int = 4099260516) -> dict:
    return {
        "event": "charge.success",
        "data": {
            "id": transaction_id,
            "reference": reference,
            "status": status,
            "amount": amount,
            "currency": "NGN",
            "paid_at": "2024-05-01T10:15:00.000Z",
        },
    }


async def stored_events() -> list[WebhookEvent]:
    async with get_db_session() as session:
        result = await session.execute(select(WebhookEvent).order_by(WebhookEvent.created_at))
        return list(result.scalars().all())


class TestEventId:

    def test_full_event_id(self):
        assert build_event_id("charge.success", "ref-1", 42) == "charge.success:ref-1:42"

    def test_missing_parts(self):
        assert build_event_id(None, None, None) == "unknown:no_ref:no_id"
        assert build_event_id("transfer.success", None, "") == "transfer.success:no_ref:no_id"

    def test_truncated_to_column_size(self):
        assert len(build_event_id("charge.success", "r" * 300, 1)) == 160


class TestSignature:

    @pytest.mark.asyncio
    async def test_missing_signature(self, client):
        response = await client.post(WEBHOOK_URL, content=b'{"event":"charge.success"}')
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Missing x-paystack-signature"}
        assert await stored_events() == []

    @pytest.mark.asyncio
    async def test_invalid_signature(self, client):
        response = await client.post(WEBHOOK_URL, content=b'{"event":"charge.success"}',
                                     headers={"x-paystack-signature": "deadbeef"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid signature"

    @pytest.mark.asyncio
    async def test_secret_not_configured(self, client):
        with patch.object(config, "PAYSTACK_SECRET_KEY", ""):
            response = await client.post(WEBHOOK_URL, content=b"{}", headers={"x-paystack-signature": "abc"})
        assert response.status_code == 500
        assert response.json()["error"] == "PAYSTACK_SECRET_KEY not configured"

    @pytest.mark.asyncio
    async def test_signed_invalid_json(self, client):
        body, headers = signed_request(b"not json")
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON payload"

    @pytest.mark.asyncio
    async def test_signed_non_object_json(self, client):
        body, headers = signed_request(b"[1, 2]")
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)
        assert response.status_code == 400


class TestIgnoredEvents:

    @pytest.mark.asyncio
    async def test_other_event_type(self, client):
        body, headers = signed_request({"event": "transfer.success", "data": {"reference": "tr-1", "id": 7}})
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "received": True, "ignored": True}
        events = await stored_events()
        assert len(events) == 1
        assert events[0].event_id == "transfer.success:tr-1:7"
        assert events[0].outcome == "IGNORED"
        assert events[0].processed_at is not None

    @pytest.mark.asyncio
    async def test_missing_reference(self, client):
        body, headers = signed_request({"event": "charge.success", "data": {"id": 8, "amount": 100}})
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)
        assert response.json() == {"ok": True, "received": True, "ignored": True, "reason": "missing_reference"}

    @pytest.mark.asyncio
    async def test_failed_charge(self, client):
        body, headers = signed_request(charge_success("ref-x", 100, status="failed"))
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)
        assert response.json() == {"ok": True, "received": True, "ignored": True, "reason": "not_success_status"}

    @pytest.mark.asyncio
    async def test_unknown_reference_is_processed_without_effect(self, client):
        body, headers = signed_request(charge_success("no-such-ref", 100))
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)

        assert response.json() == {"ok": True, "received": True, "processed": True}
        events = await stored_events()
        assert events[0].outcome == "UNKNOWN_REFERENCE"


class TestChargeSuccess:

    @pytest.mark.asyncio
    async def test_confirms_order(self, client, catalog, pending_order):
        body, headers = signed_request(charge_success(pending_order.payment_reference, pending_order.total_kobo))
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "received": True, "processed": True}
        order = await get_order(pending_order.order_id)
        assert order.status == OrderStatus.PROCESSING
        assert (await get_inventory(catalog.kaftan_variant_id)).quantity == Decimal("2")
        events = await stored_events()
        assert events[0].reference == pending_order.payment_reference
        assert events[0].outcome == "CONFIRMED"

    @pytest.mark.asyncio
    async def test_redelivery_is_acknowledged_once(self, client, catalog, pending_order):
        body, headers = signed_request(charge_success(pending_order.payment_reference, pending_order.total_kobo))
        first = await client.post(WEBHOOK_URL, content=body, headers=headers)
        second = await client.post(WEBHOOK_URL, content=body, headers=headers)

        assert first.json()["processed"] is True
        assert second.status_code == 200
        assert second.json() == {"ok": True, "received": True, "duplicate": True}
        assert len(await stored_events()) == 1
        # Stock committed once
        assert (await get_inventory(catalog.kaftan_variant_id)).quantity == Decimal("2")

    @pytest.mark.asyncio
    async def test_amount_mismatch_recorded(self, client, pending_order):
        body, headers = signed_request(charge_success(pending_order.payment_reference, 100))
        response = await client.post(WEBHOOK_URL, content=body, headers=headers)

        assert response.status_code == 200
        assert (await get_order(pending_order.order_id)).status == OrderStatus.PENDING_PAYMENT
        assert (await stored_events())[0].outcome == "AMOUNT_MISMATCH"

    @pytest.mark.asyncio
    async def test_processing_error_still_acknowledged(self, client, pending_order):
        from services.payment import PaymentService

        body, headers = signed_request(charge_success(pending_order.payment_reference, pending_order.total_kobo))
        with patch.object(PaymentService, "confirm_payment", side_effect=RuntimeError("boom")):
            response = await client.post(WEBHOOK_URL, content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "received": True, "processed": False}
        assert (await stored_events())[0].outcome == "ERROR"
