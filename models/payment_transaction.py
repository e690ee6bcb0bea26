from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, CheckConstraint, \
    Enum as SQLEnum

from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.base import Base, generate_uuid, CamelModel
from utils.time_utils import utcnow


class PaymentTransaction(Base):
    """
    One payment attempt for an order, keyed by its gateway reference.

    This row is the idempotency anchor: it moves INITIALIZED -> PAID exactly
    once, through a conditional UPDATE guarded on the current status.
    """
    __tablename__ = 'payment_transactions'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(SQLEnum(PaymentMethod), nullable=False)
    status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.INITIALIZED)
    reference = Column(String(100), nullable=False, unique=True)
    amount_kobo = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")
    paid_at = Column(DateTime, nullable=True)
    raw_init_payload = Column(JSON, nullable=True)
    raw_verify_payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint('amount_kobo >= 0', name='check_payment_amount_non_negative'),
    )


class PaymentTransactionDTO(BaseModel):
    id: str | None = None
    order_id: str | None = None
    provider: PaymentMethod | None = None
    status: PaymentStatus | None = None
    reference: str | None = None
    amount_kobo: int | None = None
    currency: str | None = None
    paid_at: datetime | None = None
    raw_init_payload: dict | None = None
    raw_verify_payload: dict | None = None
    created_at: datetime | None = None


class PaymentVerificationView(CamelModel):
    reference: str
    verified: bool = True
    order_id: str
    paid: bool | None = None
    already_paid: bool | None = None
    paystack_status: str | None = None


class PaymentInitializationView(CamelModel):
    order_id: str
    already_paid: bool | None = None
    reference: str | None = None
    authorization_url: str | None = None
    total_kobo: int | None = None
