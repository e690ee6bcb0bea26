from enum import Enum


class InventoryState(str, Enum):
    """
    Where an order's stock-tracked lines stand against inventory.

    RESERVED  -> counted in Inventory.reserved (unpaid order)
    COMMITTED -> deducted from Inventory.quantity (paid / confirmed order)
    RELEASED  -> reservation given back (cancelled before commit)
    RESTOCKED -> committed quantity returned to stock (cancelled after commit)
    NONE      -> order has no stock-tracked lines
    """
    RESERVED = "RESERVED"
    COMMITTED = "COMMITTED"
    RELEASED = "RELEASED"
    RESTOCKED = "RESTOCKED"
    NONE = "NONE"
