from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, String, ForeignKey, CheckConstraint

from models.base import Base, generate_uuid, FixedDecimal


class Inventory(Base):
    """
    Stock ledger of one variant.

    quantity: on-hand stock
    reserved: held against unpaid orders (never more than on-hand)
    Available stock = quantity - reserved.
    """
    __tablename__ = 'inventories'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    variant_id = Column(String(36), ForeignKey('product_variants.id', ondelete="CASCADE"), nullable=False, unique=True)
    quantity = Column(FixedDecimal, nullable=False, default=0)
    reserved = Column(FixedDecimal, nullable=False, default=0)
    low_stock_at = Column(FixedDecimal, nullable=True)

    __table_args__ = (
        CheckConstraint('reserved >= 0', name='check_inventory_reserved_non_negative'),
        CheckConstraint('reserved <= quantity', name='check_inventory_reserved_within_quantity'),
    )


class InventoryDTO(BaseModel):
    id: str | None = None
    variant_id: str | None = None
    quantity: Decimal | None = None
    reserved: Decimal | None = None
    low_stock_at: Decimal | None = None

    @property
    def available(self) -> Decimal:
        return (self.quantity or Decimal(0)) - (self.reserved or Decimal(0))
