from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.cart_status import CartStatus
from models.cart import Cart, CartDTO
from models.cartItem import CartItem
from utils.time_utils import utcnow


class CartRepository:
    @staticmethod
    async def get_by_id(cart_id: str, session: AsyncSession | Session) -> CartDTO | None:
        stmt = select(Cart).execution_options(populate_existing=True).where(Cart.id == cart_id)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        return None

    @staticmethod
    async def get_active_for_user(user_id: str, session: AsyncSession | Session) -> CartDTO | None:
        """Newest ACTIVE cart of the user."""
        stmt = select(Cart).execution_options(populate_existing=True).where(
            Cart.user_id == user_id,
            Cart.status == CartStatus.ACTIVE
        ).order_by(Cart.updated_at.desc(), Cart.created_at.desc()).limit(1)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        return None

    @staticmethod
    async def get_by_guest_key(guest_key: str, session: AsyncSession | Session) -> CartDTO | None:
        """Cart of this guest key, whatever its status."""
        stmt = select(Cart).execution_options(populate_existing=True).where(Cart.guest_key == guest_key)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        return None

    @staticmethod
    async def get_active_guest_cart(guest_key: str, session: AsyncSession | Session) -> CartDTO | None:
        """ACTIVE cart of this guest key that no user has claimed yet."""
        stmt = select(Cart).execution_options(populate_existing=True).where(
            Cart.guest_key == guest_key,
            Cart.user_id.is_(None),
            Cart.status == CartStatus.ACTIVE
        )
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        return None

    @staticmethod
    async def create(session: AsyncSession | Session, user_id: str | None = None,
                     guest_key: str | None = None, currency: str = "NGN") -> CartDTO:
        cart = Cart(user_id=user_id, guest_key=guest_key, currency=currency, status=CartStatus.ACTIVE)
        session.add(cart)
        await session_flush(session)
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def update_status(cart_id: str, status: CartStatus, session: AsyncSession | Session) -> None:
        stmt = update(Cart).where(Cart.id == cart_id).values(status=status, updated_at=utcnow())
        await session_execute(stmt, session)

    @staticmethod
    async def close_for_order(cart_id: str, session: AsyncSession | Session) -> bool:
        """ACTIVE -> ORDERED, only for the first checkout that gets here."""
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.status == CartStatus.ACTIVE)
            .values(status=CartStatus.ORDERED, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def reactivate(cart_id: str, session: AsyncSession | Session) -> None:
        """Back to ACTIVE with no lines: what was ordered stays with the order."""
        await session_execute(delete(CartItem).where(CartItem.cart_id == cart_id), session)
        await CartRepository.update_status(cart_id, CartStatus.ACTIVE, session)

    @staticmethod
    async def touch(cart_id: str, session: AsyncSession | Session) -> None:
        stmt = update(Cart).where(Cart.id == cart_id).values(updated_at=utcnow())
        await session_execute(stmt, session)

    @staticmethod
    async def delete(cart_id: str, session: AsyncSession | Session) -> None:
        await session_execute(delete(CartItem).where(CartItem.cart_id == cart_id), session)
        await session_execute(delete(Cart).where(Cart.id == cart_id), session)
