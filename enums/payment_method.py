from enum import Enum


class PaymentMethod(str, Enum):
    PAYSTACK = "PAYSTACK"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"

    @classmethod
    def from_payload(cls, value) -> 'PaymentMethod':
        """Anything other than an explicit CASH_ON_DELIVERY falls back to PAYSTACK."""
        if value == cls.CASH_ON_DELIVERY.value:
            return cls.CASH_ON_DELIVERY
        return cls.PAYSTACK
