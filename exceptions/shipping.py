"""
Shipping/address-related exceptions.
"""

from .base import ShopException


class ShippingException(ShopException):
    """Base exception for shipping-related errors."""
    pass


class MissingShippingAddressException(ShippingException):
    """Raised when checkout has neither a saved address nor an inline one."""

    def __init__(self):
        super().__init__("Address is required")


class InvalidAddressException(ShippingException):
    """Raised when a saved address does not belong to the user."""

    def __init__(self, address_id: str):
        super().__init__(
            "Invalid addressId",
            details={'address_id': address_id}
        )
        self.address_id = address_id
