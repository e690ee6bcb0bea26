import asyncio
import hashlib
import hmac
import logging
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel

import config
from exceptions.base import ConfigurationException

logger = logging.getLogger(__name__)


class PaystackResponse(BaseModel):
    """Outcome of one Paystack API call. payload is always a dict so it can be stored as JSON."""
    ok: bool
    http_status: int | None = None
    payload: dict = {}
    request: dict = {}
    authorization_url: str | None = None

    @property
    def data(self) -> dict:
        data = self.payload.get("data")
        return data if isinstance(data, dict) else {}


class PaystackApiWrapper:
    @staticmethod
    def get_secret_key() -> str:
        if not config.PAYSTACK_SECRET_KEY:
            raise ConfigurationException("PAYSTACK_SECRET_KEY")
        return config.PAYSTACK_SECRET_KEY

    @staticmethod
    def resolve_callback_url(override: str | None = None) -> str:
        """Request override, then PAYSTACK_CALLBACK_URL, then the storefront success page."""
        if override:
            return override
        if config.PAYSTACK_CALLBACK_URL:
            return config.PAYSTACK_CALLBACK_URL
        return f"{config.SITE_URL}/checkout/success"

    @staticmethod
    async def fetch_api_request(url: str, method: str = "GET", data: dict | None = None) -> tuple[int | None, dict]:
        """
        Call the Paystack API.

        Returns (http status, json body). Transport errors and non-JSON bodies
        never raise: they come back as (None or status, {"error": ...}).
        """
        headers = {
            "Authorization": f"Bearer {PaystackApiWrapper.get_secret_key()}",
            "Content-Type": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=config.PAYSTACK_TIMEOUT_SECONDS)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, json=data, headers=headers) as response:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = None
                    if not isinstance(body, dict):
                        body = {"error": "Non-JSON response from Paystack"}
                    return response.status, body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"❌ Paystack request {method} {url} failed: {type(e).__name__}: {e}")
            return None, {"error": f"{type(e).__name__}: {e}"}

    @staticmethod
    async def initialize_transaction(email: str, amount_kobo: int, reference: str,
                                     callback_url: str | None = None,
                                     metadata: dict | None = None) -> PaystackResponse:
        """
        Open a hosted payment page.

        The call succeeded when ``ok`` (2xx status and ``status: true``); the
        hosted page is usable only when ``authorization_url`` is also set.
        """
        request_body = {
            "email": email,
            "amount": amount_kobo,
            "reference": reference,
            "callback_url": PaystackApiWrapper.resolve_callback_url(callback_url),
            "currency": config.DEFAULT_CURRENCY,
            "metadata": metadata or {},
        }
        status, body = await PaystackApiWrapper.fetch_api_request(
            f"{config.PAYSTACK_BASE_URL}/transaction/initialize",
            method="POST",
            data=request_body
        )
        response = PaystackResponse(ok=False, http_status=status, payload=body, request=request_body)
        authorization_url = response.data.get("authorization_url")
        if isinstance(authorization_url, str) and authorization_url:
            response.authorization_url = authorization_url
        if status is not None and 200 <= status < 300 and body.get("status") is True:
            response.ok = True
        else:
            logger.warning(f"⚠️ Paystack initialize failed for {reference}: HTTP {status}, message={body.get('message')}")
        return response

    @staticmethod
    async def verify_transaction(reference: str) -> PaystackResponse:
        """Look a transaction up. Success needs a 2xx status and ``status: true``."""
        status, body = await PaystackApiWrapper.fetch_api_request(
            f"{config.PAYSTACK_BASE_URL}/transaction/verify/{quote(reference, safe='')}"
        )
        ok = status is not None and 200 <= status < 300 and body.get("status") is True
        if not ok:
            logger.warning(f"⚠️ Paystack verify failed for {reference}: HTTP {status}, message={body.get('message')}")
        return PaystackResponse(ok=ok, http_status=status, payload=body)

    @staticmethod
    def verify_signature(raw_body: bytes, signature: str | None) -> bool:
        """
        Validate the x-paystack-signature header: hex HMAC-SHA512 of the raw
        body keyed with the secret key, compared in constant time.
        """
        if not signature:
            return False
        secret_key = PaystackApiWrapper.get_secret_key().encode("utf-8")
        expected = hmac.new(secret_key, raw_body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(expected, signature.strip().lower())
