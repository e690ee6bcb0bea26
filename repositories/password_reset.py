from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.password_reset_token import PasswordResetToken, PasswordResetTokenDTO
from utils.time_utils import utcnow


class PasswordResetRepository:
    @staticmethod
    async def create(user_id: str, token_hash: str, expires_at: datetime,
                     session: AsyncSession | Session) -> PasswordResetTokenDTO:
        token = PasswordResetToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        session.add(token)
        await session_flush(session)
        return PasswordResetTokenDTO.model_validate(token, from_attributes=True)

    @staticmethod
    async def get_usable(user_id: str, token_hash: str,
                         session: AsyncSession | Session) -> PasswordResetTokenDTO | None:
        """Newest unused, unexpired token of the user matching the hash."""
        stmt = select(PasswordResetToken).where(
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.token_hash == token_hash,
            PasswordResetToken.used_at.is_(None),
            PasswordResetToken.expires_at > utcnow()
        ).order_by(PasswordResetToken.created_at.desc()).limit(1)
        token = await session_execute(stmt, session)
        token = token.scalar()
        if token is not None:
            return PasswordResetTokenDTO.model_validate(token, from_attributes=True)
        return None

    @staticmethod
    async def mark_used(token_id: str, session: AsyncSession | Session) -> bool:
        """Conditional: a token can be spent once."""
        stmt = update(PasswordResetToken).where(
            PasswordResetToken.id == token_id,
            PasswordResetToken.used_at.is_(None)
        ).values(used_at=utcnow())
        result = await session_execute(stmt, session)
        return result.rowcount == 1
