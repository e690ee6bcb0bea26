import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit
from exceptions.base import InvalidRequestException
from models.address import AddressDTO, AddressInput
from models.user import UserDTO, UserView
from repositories.address import AddressRepository

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    def to_view(user: UserDTO) -> UserView:
        return UserView(id=user.id, email=user.email, full_name=user.full_name, phone=user.phone, role=user.role)

    @staticmethod
    async def list_addresses(user: UserDTO, session: AsyncSession | Session) -> list[AddressDTO]:
        return await AddressRepository.get_by_user(user.id, session)

    @staticmethod
    async def create_address(user: UserDTO, address_input: AddressInput,
                             session: AsyncSession | Session) -> AddressDTO:
        """Save an address; a new default address takes the flag from the previous one."""
        address_line1 = (address_input.address_line1 or "").strip()
        if not address_line1:
            raise InvalidRequestException("Address is required", field="addressLine1")
        address_input.address_line1 = address_line1

        existing = await AddressRepository.get_by_user(user.id, session)
        if not existing:
            # First address is the default one
            address_input.is_default = True

        address = await AddressRepository.create(user.id, address_input, session,
                                                 default_country=config.DEFAULT_COUNTRY)
        await session_commit(session)
        logger.info(f"🏠 Address {address.id} saved for user {user.id} (default={address.is_default})")
        return address
