from enum import Enum


class ProductType(str, Enum):
    FABRIC = "FABRIC"           # Sold by length, fractional quantities allowed
    READY_MADE = "READY_MADE"
    CAP = "CAP"
    SHOE = "SHOE"
    SERVICE = "SERVICE"         # Tailoring services, never stock-checked

    @property
    def allows_fractional_quantity(self) -> bool:
        return self == ProductType.FABRIC

    @property
    def is_stock_tracked(self) -> bool:
        return self != ProductType.SERVICE
