from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.webhook_event import WebhookEvent, WebhookEventDTO
from utils.time_utils import utcnow


class WebhookEventRepository:
    @staticmethod
    async def create(provider: str, event_id: str, session: AsyncSession | Session,
                     event_type: str | None = None, reference: str | None = None,
                     payload: dict | None = None) -> WebhookEventDTO:
        """
        Insert the dedup record.

        Raises:
            IntegrityError: an event with the same (provider, event_id) exists
        """
        event = WebhookEvent(
            provider=provider,
            event_id=event_id,
            event_type=event_type,
            reference=reference,
            payload=payload,
        )
        session.add(event)
        await session_flush(session)
        return WebhookEventDTO.model_validate(event, from_attributes=True)

    @staticmethod
    async def mark_processed(event_id: str, outcome: str, session: AsyncSession | Session) -> None:
        stmt = (
            update(WebhookEvent)
            .where(WebhookEvent.id == event_id)
            .values(processed_at=utcnow(), outcome=outcome)
            .execution_options(synchronize_session=False)
        )
        await session_execute(stmt, session)
