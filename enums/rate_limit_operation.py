from enum import Enum


class RateLimitOperation(str, Enum):
    """
    Rate limit operation types.

    Each operation has its own independent rate limit counter.
    """

    # Payment operations
    PAYMENT_CHECK = "payment_check"
    """
    Rate limit for payment verification polling.
    Config: MAX_PAYMENT_CHECKS_PER_MINUTE
    Default: 10 checks per minute
    """

    # Cart operations
    CART_CHECKOUT = "cart_checkout"
    """
    Rate limit for checkout attempts (order creation).
    Config: MAX_ORDERS_PER_USER_PER_HOUR
    Default: 10 orders per hour
    """
