"""
Cart-related exceptions.
"""

from .base import ShopException


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class CartNotFoundException(CartException):
    """Raised when the request has no cart to operate on."""

    def __init__(self):
        super().__init__("Cart not found")


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, cart_id: str | None = None):
        super().__init__(
            "Cart is empty",
            details={'cart_id': cart_id}
        )
        self.cart_id = cart_id


class CartItemNotFoundException(CartException):
    """Raised when cart item not found in the current cart."""

    def __init__(self, cart_item_id: str):
        super().__init__(
            "Item not found",
            details={'cart_item_id': cart_item_id}
        )
        self.cart_item_id = cart_item_id


class InvalidCartStateException(CartException):
    """Raised when cart contents cannot be used for the requested operation."""

    def __init__(self, reason: str, cart_id: str | None = None):
        super().__init__(
            reason,
            details={'cart_id': cart_id, 'reason': reason}
        )
        self.cart_id = cart_id
        self.reason = reason


class InvalidQuantityException(CartException):
    """Raised when a quantity breaks the whole-number, minimum or step rules."""

    def __init__(self, reason: str, quantity=None):
        super().__init__(
            reason,
            details={'quantity': str(quantity) if quantity is not None else None}
        )
        self.reason = reason
        self.quantity = quantity


class StockExceededException(CartException):
    """Raised when a cart line asks for more than is available."""

    def __init__(self, variant_id: str, requested, available):
        super().__init__(
            "Requested quantity exceeds available stock",
            details={'variant_id': variant_id, 'requested': str(requested), 'available': str(available)}
        )
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
