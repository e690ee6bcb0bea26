# cart is a container of priced lines keyed either by a logged-in user or by an
# anonymous guest key (cookie). Lines are NOT reserved; stock is reserved only
# at checkout, so availability is checked again when the order is created.
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SQLEnum

from enums.cart_status import CartStatus
from enums.item_unit import ItemUnit
from enums.product_type import ProductType
from models.base import Base, generate_uuid, CamelModel
from utils.quantity import format_quantity
from utils.time_utils import utcnow


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=True)
    guest_key = Column(String(64), nullable=True, unique=True)
    status = Column(SQLEnum(CartStatus), nullable=False, default=CartStatus.ACTIVE)
    currency = Column(String(3), nullable=False, default="NGN")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index('ix_carts_user_status', 'user_id', 'status'),
    )


class CartDTO(BaseModel):
    id: str | None = None
    user_id: str | None = None
    guest_key: str | None = None
    status: CartStatus | None = None
    currency: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CartProductView(CamelModel):
    id: str
    title: str
    slug: str
    type: ProductType
    image: str | None = None


class CartVariantView(CamelModel):
    id: str
    price_kobo: int
    unit: ItemUnit
    product: CartProductView


class CartLineView(CamelModel):
    id: str
    quantity: Decimal
    attached_to_cart_item_id: str | None = None
    meta: dict | None = None
    in_stock: bool
    line_total_kobo: int
    variant: CartVariantView

    @field_serializer('quantity')
    def serialize_quantity(self, quantity: Decimal) -> str:
        return format_quantity(quantity)


class CartView(CamelModel):
    id: str
    currency: str
    subtotal_kobo: int
    items: list[CartLineView]
