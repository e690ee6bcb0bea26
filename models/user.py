from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum

from enums.user_role import UserRole
from models.base import Base, generate_uuid, CamelModel
from utils.time_utils import utcnow


class User(Base):
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)  # Always stored lower-cased
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.CUSTOMER)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class UserDTO(BaseModel):
    id: str | None = None
    email: str | None = None
    full_name: str | None = None
    phone: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN and bool(self.is_active)


class UserView(CamelModel):
    id: str
    email: str
    full_name: str | None = None
    phone: str | None = None
    role: UserRole


class RegisterRequest(CamelModel):
    email: str
    password: str
    full_name: str | None = None
    phone: str | None = None


class LoginRequest(CamelModel):
    email: str
    password: str


class PasswordResetRequestBody(CamelModel):
    email: str


class PasswordResetConfirmBody(CamelModel):
    email: str
    token: str
    new_password: str
