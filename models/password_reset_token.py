from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, ForeignKey

from models.base import Base, generate_uuid
from utils.time_utils import utcnow


class PasswordResetToken(Base):
    __tablename__ = 'password_reset_tokens'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class PasswordResetTokenDTO(BaseModel):
    id: str | None = None
    user_id: str | None = None
    token_hash: str | None = None
    expires_at: datetime | None = None
    used_at: datetime | None = None
