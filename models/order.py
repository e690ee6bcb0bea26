from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, CheckConstraint, Text, JSON, Index, \
    Enum as SQLEnum

from enums.inventory_state import InventoryState
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import OrderPaymentStatus, PaymentStatus
from enums.product_type import ProductType
from models.base import Base, generate_uuid, CamelModel
from utils.quantity import format_quantity
from utils.time_utils import utcnow


class Order(Base):
    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id'), nullable=True)  # NULL for guest checkout
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING_PAYMENT)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False, default=PaymentMethod.PAYSTACK)
    payment_status = Column(SQLEnum(OrderPaymentStatus), nullable=False, default=OrderPaymentStatus.UNPAID)
    inventory_state = Column(SQLEnum(InventoryState), nullable=False, default=InventoryState.NONE)
    currency = Column(String(3), nullable=False, default="NGN")

    # Money in kobo. total_kobo is fixed at creation and never recomputed.
    subtotal_kobo = Column(Integer, nullable=False)
    shipping_kobo = Column(Integer, nullable=False, default=0)
    total_kobo = Column(Integer, nullable=False)
    amount_paid_kobo = Column(Integer, nullable=False, default=0)

    shipping_method_id = Column(String(36), ForeignKey('shipping_methods.id'), nullable=True)
    # Snapshots (JSON, camelCase keys) so later edits of addresses or
    # shipping methods never change what the order was placed with
    address_snapshot = Column(JSON, nullable=True)
    shipping_method_snapshot = Column(JSON, nullable=True)

    email = Column(String(255), nullable=True)  # Payer / contact email
    notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    paid_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    shipped_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint('total_kobo = subtotal_kobo + shipping_kobo', name='check_order_total_consistent'),
        CheckConstraint('subtotal_kobo >= 0', name='check_order_subtotal_non_negative'),
        CheckConstraint('shipping_kobo >= 0', name='check_order_shipping_non_negative'),
        Index('ix_orders_user_created', 'user_id', 'created_at'),
        Index('ix_orders_status_created', 'status', 'created_at'),
    )


class OrderDTO(BaseModel):
    id: str | None = None
    user_id: str | None = None
    status: OrderStatus | None = None
    payment_method: PaymentMethod | None = None
    payment_status: OrderPaymentStatus | None = None
    inventory_state: InventoryState | None = None
    currency: str | None = None
    subtotal_kobo: int | None = None
    shipping_kobo: int | None = None
    total_kobo: int | None = None
    amount_paid_kobo: int | None = None
    shipping_method_id: str | None = None
    address_snapshot: dict | None = None
    shipping_method_snapshot: dict | None = None
    email: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    cancelled_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    @property
    def order_number(self) -> str:
        """Short human-facing code: first 8 hex chars of the id, upper-cased."""
        return (self.id or "")[:8].upper()


class OrderItemView(CamelModel):
    id: str
    product_id: str | None = None
    variant_id: str | None = None
    product_type: ProductType
    title: str
    sku: str | None = None
    quantity: Decimal
    unit_price_kobo: int
    line_total_kobo: int
    meta: dict | None = None

    @field_serializer('quantity')
    def serialize_quantity(self, quantity: Decimal) -> str:
        return format_quantity(quantity)


class PaymentView(CamelModel):
    id: str
    provider: PaymentMethod
    status: PaymentStatus
    reference: str
    amount_kobo: int
    currency: str
    paid_at: datetime | None = None
    created_at: datetime | None = None


class OrderView(CamelModel):
    id: str
    order_number: str
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: OrderPaymentStatus
    currency: str
    subtotal_kobo: int
    shipping_kobo: int
    total_kobo: int
    amount_paid_kobo: int
    address_snapshot: dict | None = None
    shipping_method_snapshot: dict | None = None
    email: str | None = None
    notes: str | None = None
    created_at: datetime
    paid_at: datetime | None = None
    cancelled_at: datetime | None = None
    items: list[OrderItemView] = []
    payments: list[PaymentView] | None = None


class AdminOrderListView(CamelModel):
    id: str
    order_number: str
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: OrderPaymentStatus
    total: str            # Naira with two decimals, e.g. "12500.00"
    total_kobo: int
    currency: str
    customer_email: str | None = None
    customer_name: str | None = None
    items_count: int
    created_at: datetime
