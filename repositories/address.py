from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.address import Address, AddressDTO, AddressInput


class AddressRepository:
    @staticmethod
    async def get_by_user(user_id: str, session: AsyncSession | Session) -> list[AddressDTO]:
        """Active addresses, default first, then newest."""
        stmt = select(Address).where(
            Address.user_id == user_id,
            Address.is_active.is_(True)
        ).order_by(Address.is_default.desc(), Address.created_at.desc())
        addresses = await session_execute(stmt, session)
        return [AddressDTO.model_validate(address, from_attributes=True) for address in addresses.scalars().all()]

    @staticmethod
    async def get_for_user(address_id: str, user_id: str, session: AsyncSession | Session) -> AddressDTO | None:
        stmt = select(Address).where(
            Address.id == address_id,
            Address.user_id == user_id,
            Address.is_active.is_(True)
        )
        address = await session_execute(stmt, session)
        address = address.scalar()
        if address is not None:
            return AddressDTO.model_validate(address, from_attributes=True)
        return None

    @staticmethod
    async def create(user_id: str, address_input: AddressInput, session: AsyncSession | Session,
                     default_country: str = "NG") -> AddressDTO:
        if address_input.is_default:
            unset_stmt = update(Address).where(Address.user_id == user_id).values(is_default=False)
            await session_execute(unset_stmt, session)

        fields = address_input.model_dump(exclude={'is_default', 'country'})
        address = Address(
            user_id=user_id,
            country=(address_input.country or default_country).upper(),
            is_default=bool(address_input.is_default),
            **fields
        )
        session.add(address)
        await session_flush(session)
        return AddressDTO.model_validate(address, from_attributes=True)
