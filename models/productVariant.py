from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, CheckConstraint, \
    Enum as SQLEnum

from enums.item_unit import ItemUnit
from models.base import Base, generate_uuid, FixedDecimal, CamelModel
from utils.quantity import format_quantity
from utils.time_utils import utcnow


class ProductVariant(Base):
    __tablename__ = 'product_variants'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    product_id = Column(String(36), ForeignKey('products.id', ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    sku = Column(String(100), nullable=True, unique=True)
    unit = Column(SQLEnum(ItemUnit), nullable=False, default=ItemUnit.PIECE)
    size = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    # Fabric sold by length: e.g. min 1 yard, step 0.5 yard
    min_qty = Column(FixedDecimal, nullable=True)
    qty_step = Column(FixedDecimal, nullable=True)
    price_kobo = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('price_kobo >= 0', name='check_variant_price_non_negative'),
    )


class ProductVariantDTO(BaseModel):
    id: str | None = None
    product_id: str | None = None
    title: str | None = None
    sku: str | None = None
    unit: ItemUnit | None = None
    size: str | None = None
    color: str | None = None
    min_qty: Decimal | None = None
    qty_step: Decimal | None = None
    price_kobo: int | None = None
    is_active: bool | None = None
    created_at: datetime | None = None


class VariantView(CamelModel):
    id: str
    title: str | None = None
    sku: str | None = None
    unit: ItemUnit
    size: str | None = None
    color: str | None = None
    min_qty: Decimal | None = None
    qty_step: Decimal | None = None
    price_kobo: int
    available: Decimal | None = None    # None: not stock-tracked

    @field_serializer('min_qty', 'qty_step', 'available')
    def serialize_quantity(self, quantity: Decimal | None) -> str | None:
        return format_quantity(quantity)
