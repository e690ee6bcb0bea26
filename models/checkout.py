from typing import Any

from enums.payment_method import PaymentMethod
from models.address import AddressDTO
from models.base import CamelModel
from models.shipping_method import ShippingMethodDTO


class CheckoutRequest(CamelModel):
    # Loosely typed: unknown payment methods fall back to Paystack and
    # non-string ids are treated as absent
    payment_method: Any = None
    address_id: Any = None
    address: dict | None = None
    email: Any = None
    shipping_method_id: Any = None
    notes: Any = None
    callback_url: Any = None


class CheckoutCartSummary(CamelModel):
    id: str
    currency: str
    subtotal_kobo: int
    items_count: int


class CheckoutContextView(CamelModel):
    cart: CheckoutCartSummary | None = None
    shipping_methods: list[ShippingMethodDTO] = []
    addresses: list[AddressDTO] = []


class CheckoutResult(CamelModel):
    order_id: str
    payment_method: PaymentMethod
    payment_reference: str
    total_kobo: int
    authorization_url: str | None = None
    message: str | None = None
