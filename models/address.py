from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey

from models.base import Base, generate_uuid, CamelModel
from utils.time_utils import utcnow


class Address(Base):
    __tablename__ = 'addresses'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(100), nullable=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    country = Column(String(2), nullable=False, default="NG")
    state = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255), nullable=True)
    landmark = Column(String(255), nullable=True)
    postal_code = Column(String(20), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class AddressDTO(CamelModel):
    id: str | None = None
    user_id: str | None = None
    label: str | None = None
    full_name: str | None = None
    phone: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    landmark: str | None = None
    postal_code: str | None = None
    is_default: bool | None = None
    is_active: bool | None = None
    created_at: datetime | None = None


class AddressInput(CamelModel):
    """Inline address as posted at checkout or when saving an address."""
    label: str | None = None
    full_name: str | None = None
    phone: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    landmark: str | None = None
    postal_code: str | None = None
    is_default: bool | None = None


class AddressSnapshot(CamelModel):
    """Frozen copy of a shipping address stored on the order."""
    id: str | None = None
    label: str | None = None
    full_name: str | None = None
    phone: str | None = None
    country: str = "NG"
    state: str | None = None
    city: str | None = None
    address_line1: str
    address_line2: str | None = None
    landmark: str | None = None
    postal_code: str | None = None

