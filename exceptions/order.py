"""
Order-related exceptions.
"""

from .base import ShopException


class OrderException(ShopException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: str):
        super().__init__(
            "Order not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InvalidOrderIdException(OrderException):
    """Raised when an order id is neither a UUID nor an 8-hex short code."""

    def __init__(self, order_id: str):
        super().__init__(
            "Invalid order id",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InsufficientStockException(OrderException):
    """Raised when trying to reserve items with insufficient stock."""

    def __init__(self, title: str, requested=None, available=None):
        super().__init__(
            f"Insufficient stock for {title}",
            details={'title': title, 'requested': str(requested), 'available': str(available)}
        )
        self.title = title
        self.requested = requested
        self.available = available


class InvalidOrderStateException(OrderException):
    """Raised when order is in invalid state for requested operation."""

    def __init__(self, order_id: str, current_state: str, required_state: str):
        super().__init__(
            f"Order {order_id} is in state '{current_state}', cannot move to '{required_state}'",
            details={'order_id': order_id, 'current_state': current_state, 'required_state': required_state}
        )
        self.order_id = order_id
        self.current_state = current_state
        self.required_state = required_state


class OrderOwnershipException(OrderException):
    """Raised when user attempts to access/modify order they don't own."""

    def __init__(self, order_id: str, user_id: str | None):
        super().__init__(
            "Forbidden",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id
