from enum import Enum


class ItemUnit(str, Enum):
    """
    Unit of sale for a product variant.

    Fabrics are sold by length (METER / YARD), everything else by PIECE.
    """

    PIECE = "PIECE"
    METER = "METER"
    YARD = "YARD"
