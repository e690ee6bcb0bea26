"""
Error Handler Utility for HTTP routes

Provides centralized error handling with:
- Automatic exception to HTTP status mapping
- The {"ok": false, "error": ...} envelope for every failure
- Logging for debugging

Services raise exceptions from the exceptions package; they bubble up to the
handlers registered here. Routes that want a specific message for unexpected
failures wrap themselves in ``safe_route("Failed to ...")``.
"""

import logging
from functools import wraps

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from exceptions import (
    ShopException,
    RateLimitExceededException,
    ConfigurationException,
    InvalidRequestException,
    CartNotFoundException,
    CartItemNotFoundException,
    EmptyCartException,
    InvalidCartStateException,
    InvalidQuantityException,
    StockExceededException,
    ProductNotFoundException,
    VariantNotFoundException,
    OrderNotFoundException,
    InvalidOrderIdException,
    InsufficientStockException,
    InvalidOrderStateException,
    OrderOwnershipException,
    PaymentNotFoundException,
    PaymentAmountMismatchException,
    PaymentCurrencyMismatchException,
    PaymentGatewayException,
    InvalidPaymentMethodException,
    MissingPayerEmailException,
    InvalidWebhookSignatureException,
    MissingShippingAddressException,
    InvalidAddressException,
    AuthenticationRequiredException,
    InvalidCredentialsException,
    AdminRequiredException,
    EmailAlreadyRegisteredException,
    InvalidResetTokenException,
    AccountDisabledException,
)
from utils.api_response import api_error

logger = logging.getLogger(__name__)

# Map exception types to HTTP status codes
ERROR_STATUS_MAPPING: dict[type, int] = {
    # Base
    RateLimitExceededException: 429,
    ConfigurationException: 500,
    InvalidRequestException: 400,

    # Cart exceptions
    CartNotFoundException: 404,
    CartItemNotFoundException: 404,
    EmptyCartException: 400,
    InvalidCartStateException: 400,
    InvalidQuantityException: 400,
    StockExceededException: 400,

    # Catalog exceptions
    ProductNotFoundException: 404,
    VariantNotFoundException: 404,

    # Order exceptions
    OrderNotFoundException: 404,
    InvalidOrderIdException: 400,
    InsufficientStockException: 400,
    InvalidOrderStateException: 409,
    OrderOwnershipException: 403,

    # Payment exceptions
    PaymentNotFoundException: 404,
    PaymentAmountMismatchException: 400,
    PaymentCurrencyMismatchException: 400,
    PaymentGatewayException: 502,
    InvalidPaymentMethodException: 400,
    MissingPayerEmailException: 400,
    InvalidWebhookSignatureException: 400,

    # Shipping exceptions
    MissingShippingAddressException: 400,
    InvalidAddressException: 400,

    # User exceptions
    AuthenticationRequiredException: 401,
    InvalidCredentialsException: 401,
    AdminRequiredException: 403,
    EmailAlreadyRegisteredException: 409,
    InvalidResetTokenException: 400,
    AccountDisabledException: 403,
}


def get_status_code(exception: ShopException) -> int:
    """Most specific mapping along the exception's MRO; unmapped store errors are client errors."""
    if isinstance(exception, PaymentGatewayException) and exception.status_code:
        return exception.status_code
    for exception_type in type(exception).__mro__:
        if exception_type in ERROR_STATUS_MAPPING:
            return ERROR_STATUS_MAPPING[exception_type]
    logger.error(f"Unmapped exception type: {type(exception).__name__}")
    return 400


def handle_service_error(exception: ShopException) -> tuple[int, str]:
    """
    Convert a service exception to (HTTP status, client message).

    Example:
        try:
            order = await OrderService.get_order_for_user(order_id, user)
        except ShopException as e:
            status, message = handle_service_error(e)
    """
    status_code = get_status_code(exception)
    if status_code >= 500:
        logger.error(f"Service error handled: {exception!r}")
    else:
        logger.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")
    return status_code, exception.message


def handle_unexpected_error(exception: Exception, message: str = "Internal server error") -> tuple[int, str]:
    """Log the full exception, answer with a generic message."""
    logger.error(f"Unexpected error: {type(exception).__name__} - {str(exception)}", exc_info=exception)
    return 500, message


def safe_route(generic_message: str):
    """
    Decorator for routes: store errors pass through to the registered handlers,
    anything else becomes a 500 with the route's generic message.

    Usage:
        @router.post("/items")
        @safe_route("Failed to add item to cart")
        async def add_item(...):
            ...
    """
    def decorator(route_func):
        @wraps(route_func)
        async def wrapper(*args, **kwargs):
            try:
                return await route_func(*args, **kwargs)
            except ShopException:
                raise
            except Exception as e:
                status_code, message = handle_unexpected_error(e, generic_message)
                return api_error(message, status_code)

        return wrapper
    return decorator


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopException)
    async def shop_exception_handler(request: Request, exc: ShopException):
        status_code, message = handle_service_error(exc)
        headers = None
        if isinstance(exc, RateLimitExceededException):
            headers = {"Retry-After": str(exc.retry_after)}
        return api_error(message, status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid payload on {request.method} {request.url.path}: {exc.errors()}")
        return api_error("Invalid payload", 400)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_error(str(exc.detail), exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        status_code, message = handle_unexpected_error(exc)
        return api_error(message, status_code)
