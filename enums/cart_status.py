from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ORDERED = "ORDERED"     # Checked out; a guest cart is reactivated on its next use
