"""
Payment-related exceptions.
"""

from .base import ShopException


class PaymentException(ShopException):
    """Base exception for payment-related errors."""
    pass


class PaymentNotFoundException(PaymentException):
    """Raised when a payment reference is unknown."""

    def __init__(self, reference: str):
        super().__init__(
            "Payment reference not found",
            details={'reference': reference}
        )
        self.reference = reference


class PaymentAmountMismatchException(PaymentException):
    """Raised when the gateway reports a different amount than the transaction holds."""

    def __init__(self, reference: str, expected: int, received):
        super().__init__(
            "Amount mismatch",
            details={'reference': reference, 'expected': expected, 'received': received}
        )
        self.reference = reference
        self.expected = expected
        self.received = received


class PaymentCurrencyMismatchException(PaymentException):
    """Raised when the gateway reports a different currency than the transaction holds."""

    def __init__(self, reference: str, expected: str, received: str):
        super().__init__(
            "Currency mismatch",
            details={'reference': reference, 'expected': expected, 'received': received}
        )
        self.reference = reference
        self.expected = expected
        self.received = received


class PaymentGatewayException(PaymentException):
    """Raised when the payment provider cannot be reached or rejects a call."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message,
            details={'status_code': status_code}
        )
        self.status_code = status_code


class InvalidPaymentMethodException(PaymentException):
    """Raised when an operation needs a Paystack order but got something else."""

    def __init__(self, order_id: str, payment_method: str):
        super().__init__(
            "Order is not Paystack payment method",
            details={'order_id': order_id, 'payment_method': payment_method}
        )
        self.order_id = order_id
        self.payment_method = payment_method


class MissingPayerEmailException(PaymentException):
    """Raised when a Paystack payment has no email to bill."""

    def __init__(self, message: str = "Email is required for Paystack checkout"):
        super().__init__(message)


class InvalidWebhookSignatureException(PaymentException):
    """Raised when a webhook signature header is missing or wrong."""

    def __init__(self, reason: str = "Invalid signature"):
        super().__init__(reason)
