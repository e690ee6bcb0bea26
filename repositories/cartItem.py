from decimal import Decimal

from sqlalchemy import select, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cartItem import CartItem, CartItemDTO


class CartItemRepository:
    @staticmethod
    async def get_by_cart_id(cart_id: str, session: AsyncSession | Session) -> list[CartItemDTO]:
        """Lines in the order they were added."""
        stmt = select(CartItem).execution_options(populate_existing=True).where(
            CartItem.cart_id == cart_id
        ).order_by(CartItem.created_at.asc(), CartItem.id.asc())
        cart_items = await session_execute(stmt, session)
        return [CartItemDTO.model_validate(cart_item, from_attributes=True)
                for cart_item in cart_items.scalars().all()]

    @staticmethod
    async def get_in_cart(cart_item_id: str, cart_id: str, session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = select(CartItem).execution_options(populate_existing=True).where(
            CartItem.id == cart_item_id,
            CartItem.cart_id == cart_id
        )
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is not None:
            return CartItemDTO.model_validate(cart_item, from_attributes=True)
        return None

    @staticmethod
    async def find_line(cart_id: str, variant_id: str, attached_to_cart_item_id: str | None,
                        session: AsyncSession | Session) -> CartItemDTO | None:
        """The line with the same variant under the same parent (or at root level)."""
        if attached_to_cart_item_id is None:
            parent_clause = CartItem.attached_to_cart_item_id.is_(None)
        else:
            parent_clause = CartItem.attached_to_cart_item_id == attached_to_cart_item_id
        stmt = select(CartItem).execution_options(populate_existing=True).where(
            CartItem.cart_id == cart_id,
            CartItem.variant_id == variant_id,
            parent_clause
        ).limit(1)
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is not None:
            return CartItemDTO.model_validate(cart_item, from_attributes=True)
        return None

    @staticmethod
    async def create(cart_item: CartItemDTO, session: AsyncSession | Session) -> CartItemDTO:
        new_item = CartItem(**cart_item.model_dump(exclude_none=True))
        session.add(new_item)
        await session_flush(session)
        return CartItemDTO.model_validate(new_item, from_attributes=True)

    @staticmethod
    async def update_quantity(cart_item_id: str, quantity: Decimal, session: AsyncSession | Session,
                              meta: dict | None = None) -> None:
        values = {"quantity": quantity}
        if meta is not None:
            values["meta"] = meta
        stmt = update(CartItem).where(CartItem.id == cart_item_id).values(**values)
        await session_execute(stmt, session)

    @staticmethod
    async def delete_with_attached(cart_item_id: str, cart_id: str, session: AsyncSession | Session) -> None:
        stmt = delete(CartItem).where(
            CartItem.cart_id == cart_id,
            or_(CartItem.id == cart_item_id, CartItem.attached_to_cart_item_id == cart_item_id)
        )
        await session_execute(stmt, session)
