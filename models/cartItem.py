from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, String, ForeignKey, CheckConstraint, DateTime, JSON, Index

from models.base import Base, generate_uuid, FixedDecimal
from utils.time_utils import utcnow


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    variant_id = Column(String(36), ForeignKey("product_variants.id"), nullable=False)
    quantity = Column(FixedDecimal, nullable=False)
    # Bundled service (e.g. "sew from fabric") attached to a parent line of the same cart
    attached_to_cart_item_id = Column(String(36), ForeignKey("cart_items.id", ondelete="CASCADE"), nullable=True)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_cart_item_quantity_positive'),
        Index('ix_cart_items_cart_variant', 'cart_id', 'variant_id'),
    )


class CartItemDTO(BaseModel):
    id: str | None = None
    cart_id: str | None = None
    variant_id: str | None = None
    quantity: Decimal | None = None
    attached_to_cart_item_id: str | None = None
    meta: dict | None = None
    created_at: datetime | None = None
