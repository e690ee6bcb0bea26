from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.user_role import UserRole
from models.user import User, UserDTO


class UserRepository:
    @staticmethod
    async def get_by_id(user_id: str, session: AsyncSession | Session) -> UserDTO | None:
        stmt = select(User).where(User.id == user_id)
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        return None

    @staticmethod
    async def get_by_email(email: str, session: AsyncSession | Session) -> UserDTO | None:
        stmt = select(User).where(User.email == email.strip().lower())
        user = await session_execute(stmt, session)
        user = user.scalar()
        if user is not None:
            return UserDTO.model_validate(user, from_attributes=True)
        return None

    @staticmethod
    async def get_password_hash(user_id: str, session: AsyncSession | Session) -> str | None:
        stmt = select(User.password_hash).where(User.id == user_id)
        result = await session_execute(stmt, session)
        return result.scalar()

    @staticmethod
    async def create(email: str, password_hash: str, session: AsyncSession | Session,
                     full_name: str | None = None, phone: str | None = None,
                     role: UserRole = UserRole.CUSTOMER) -> UserDTO:
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            full_name=full_name,
            phone=phone,
            role=role,
        )
        session.add(user)
        await session_flush(session)
        return UserDTO.model_validate(user, from_attributes=True)

    @staticmethod
    async def update_password(user_id: str, password_hash: str, session: AsyncSession | Session) -> None:
        stmt = update(User).where(User.id == user_id).values(password_hash=password_hash)
        await session_execute(stmt, session)

    @staticmethod
    async def get_by_ids(user_ids: list[str], session: AsyncSession | Session) -> dict[str, UserDTO]:
        if not user_ids:
            return {}
        stmt = select(User).where(User.id.in_(user_ids))
        users = await session_execute(stmt, session)
        return {user.id: UserDTO.model_validate(user, from_attributes=True) for user in users.scalars().all()}

    @staticmethod
    async def count(session: AsyncSession | Session) -> int:
        stmt = select(func.count()).select_from(User)
        result = await session_execute(stmt, session)
        return result.scalar_one()
