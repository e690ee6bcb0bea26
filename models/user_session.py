from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, ForeignKey, Index

from models.base import Base, generate_uuid
from utils.time_utils import utcnow


class UserSession(Base):
    """
    Login session. Only the sha256 of the cookie token is stored, so a leaked
    database does not leak usable session tokens.
    """
    __tablename__ = 'user_sessions'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey('users.id', ondelete="CASCADE"), nullable=False)
    token_hash = Column(String(64), nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index('ix_user_sessions_user_id', 'user_id'),
    )


class UserSessionDTO(BaseModel):
    id: str | None = None
    user_id: str | None = None
    token_hash: str | None = None
    expires_at: datetime | None = None
    revoked_at: datetime | None = None
    ip: str | None = None
    user_agent: str | None = None
    created_at: datetime | None = None
