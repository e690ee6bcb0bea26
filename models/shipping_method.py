from datetime import datetime

from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, CheckConstraint

from models.base import Base, generate_uuid, CamelModel
from utils.time_utils import utcnow


class ShippingMethod(Base):
    __tablename__ = 'shipping_methods'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    fee_kobo = Column(Integer, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="NGN")
    rules = Column(JSON, nullable=True)  # Free-form delivery rules shown at checkout
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('fee_kobo >= 0', name='check_shipping_fee_non_negative'),
    )


class ShippingMethodDTO(CamelModel):
    id: str | None = None
    name: str | None = None
    fee_kobo: int | None = None
    currency: str | None = None
    rules: dict | list | None = None
    is_active: bool | None = None
    sort_order: int | None = None
    created_at: datetime | None = None
