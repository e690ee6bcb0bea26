from enum import Enum


class PaymentConfirmationOutcome(str, Enum):
    CONFIRMED = "CONFIRMED"
    ALREADY_PAID = "ALREADY_PAID"
    LATE_PAYMENT = "LATE_PAYMENT"               # Paid after the order was cancelled, needs manual refund
    UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
