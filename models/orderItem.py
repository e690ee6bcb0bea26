from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, CheckConstraint, \
    Enum as SQLEnum

from enums.product_type import ProductType
from models.base import Base, generate_uuid, FixedDecimal
from utils.time_utils import utcnow


class OrderItem(Base):
    """Immutable snapshot of a cart line at order time."""
    __tablename__ = 'order_items'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey('products.id'), nullable=True)
    variant_id = Column(String(36), ForeignKey('product_variants.id'), nullable=True)
    product_type = Column(SQLEnum(ProductType), nullable=False)
    title = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True)
    quantity = Column(FixedDecimal, nullable=False)
    unit_price_kobo = Column(Integer, nullable=False)
    line_total_kobo = Column(Integer, nullable=False)
    # True when this line holds (or held) stock in Inventory
    reserved = Column(Boolean, nullable=False, default=False)
    meta = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_order_item_quantity_positive'),
    )


class OrderItemDTO(BaseModel):
    id: str | None = None
    order_id: str | None = None
    product_id: str | None = None
    variant_id: str | None = None
    product_type: ProductType | None = None
    title: str | None = None
    sku: str | None = None
    quantity: Decimal | None = None
    unit_price_kobo: int | None = None
    line_total_kobo: int | None = None
    reserved: bool | None = None
    meta: dict | None = None
    created_at: datetime | None = None
