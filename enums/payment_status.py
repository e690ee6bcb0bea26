from enum import Enum


class PaymentStatus(str, Enum):
    """Status of a single payment transaction."""
    INITIALIZED = "INITIALIZED"
    PAID = "PAID"
    FAILED = "FAILED"


class OrderPaymentStatus(str, Enum):
    """Aggregated payment status of an order."""
    UNPAID = "UNPAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"
