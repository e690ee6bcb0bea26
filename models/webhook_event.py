from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, JSON, UniqueConstraint

from models.base import Base, generate_uuid
from utils.time_utils import utcnow


class WebhookEvent(Base):
    """
    Deduplication record of an incoming gateway webhook.

    The unique (provider, event_id) pair is the gate: inserting a second
    copy of the same delivery fails and the delivery is acknowledged as a
    duplicate without being processed again.
    """
    __tablename__ = 'webhook_events'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    provider = Column(String(32), nullable=False)
    event_id = Column(String(160), nullable=False)
    event_type = Column(String(64), nullable=True)
    reference = Column(String(100), nullable=True)
    payload = Column(JSON, nullable=True)
    outcome = Column(String(32), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('provider', 'event_id', name='uq_webhook_events_provider_event'),
    )


class WebhookEventDTO(BaseModel):
    id: str | None = None
    provider: str | None = None
    event_id: str | None = None
    event_type: str | None = None
    reference: str | None = None
    payload: dict | None = None
    outcome: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
