from enum import Enum


class TransitionActor(str, Enum):
    """Who is moving an order between statuses."""
    CUSTOMER = "CUSTOMER"   # The order's owner
    ADMIN = "ADMIN"
    SYSTEM = "SYSTEM"       # Payment confirmation, expiry job
