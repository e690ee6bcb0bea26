from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.user_session import UserSession, UserSessionDTO
from utils.time_utils import utcnow


class UserSessionRepository:
    @staticmethod
    async def create(user_id: str, token_hash: str, expires_at: datetime, session: AsyncSession | Session,
                     ip: str | None = None, user_agent: str | None = None) -> UserSessionDTO:
        user_session = UserSession(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            ip=ip,
            user_agent=user_agent[:512] if user_agent else None,
        )
        session.add(user_session)
        await session_flush(session)
        return UserSessionDTO.model_validate(user_session, from_attributes=True)

    @staticmethod
    async def get_active_by_token_hash(token_hash: str, session: AsyncSession | Session) -> UserSessionDTO | None:
        """Session that is neither revoked nor expired."""
        stmt = select(UserSession).where(
            UserSession.token_hash == token_hash,
            UserSession.revoked_at.is_(None),
            UserSession.expires_at > utcnow()
        )
        user_session = await session_execute(stmt, session)
        user_session = user_session.scalar()
        if user_session is not None:
            return UserSessionDTO.model_validate(user_session, from_attributes=True)
        return None

    @staticmethod
    async def revoke(token_hash: str, session: AsyncSession | Session) -> None:
        stmt = update(UserSession).where(
            UserSession.token_hash == token_hash,
            UserSession.revoked_at.is_(None)
        ).values(revoked_at=utcnow())
        await session_execute(stmt, session)

    @staticmethod
    async def revoke_all_for_user(user_id: str, session: AsyncSession | Session) -> int:
        stmt = update(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.revoked_at.is_(None)
        ).values(revoked_at=utcnow())
        result = await session_execute(stmt, session)
        return result.rowcount
