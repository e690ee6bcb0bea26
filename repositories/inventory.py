"""
Inventory ledger.

Every stock movement is a single conditional UPDATE, so two concurrent
checkouts can never both take the last unit: the row only changes when the
guard still holds at write time, and a zero rowcount means the guard failed.

These UPDATEs bypass the session identity map, so reads of ledger rows use
populate_existing to always see the current values.
"""
from decimal import Decimal

from sqlalchemy import select, update, literal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.base import FixedDecimal
from models.inventory import Inventory, InventoryDTO


def _qty(value: Decimal):
    return literal(value, type_=FixedDecimal())


class InventoryRepository:
    @staticmethod
    async def get_by_variant_id(variant_id: str, session: AsyncSession | Session) -> InventoryDTO | None:
        stmt = select(Inventory).execution_options(populate_existing=True).where(Inventory.variant_id == variant_id)
        inventory = await session_execute(stmt, session)
        inventory = inventory.scalar()
        if inventory is not None:
            return InventoryDTO.model_validate(inventory, from_attributes=True)
        return None

    @staticmethod
    async def get_by_variant_ids(variant_ids: list[str], session: AsyncSession | Session) -> dict[str, InventoryDTO]:
        if not variant_ids:
            return {}
        stmt = select(Inventory).execution_options(populate_existing=True).where(Inventory.variant_id.in_(variant_ids))
        inventories = await session_execute(stmt, session)
        return {inventory.variant_id: InventoryDTO.model_validate(inventory, from_attributes=True)
                for inventory in inventories.scalars().all()}

    @staticmethod
    async def reserve(variant_id: str, qty: Decimal, session: AsyncSession | Session) -> bool:
        """reserved += qty, only while reserved + qty <= quantity."""
        stmt = (
            update(Inventory)
            .where(
                Inventory.variant_id == variant_id,
                Inventory.reserved + _qty(qty) <= Inventory.quantity
            )
            .values(reserved=Inventory.reserved + _qty(qty))
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def commit_reserved(variant_id: str, qty: Decimal, session: AsyncSession | Session) -> bool:
        """Turn a reservation into a sale: quantity -= qty, reserved -= qty."""
        stmt = (
            update(Inventory)
            .where(
                Inventory.variant_id == variant_id,
                Inventory.reserved >= _qty(qty),
                Inventory.quantity >= _qty(qty)
            )
            .values(
                quantity=Inventory.quantity - _qty(qty),
                reserved=Inventory.reserved - _qty(qty)
            )
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def release(variant_id: str, qty: Decimal, session: AsyncSession | Session) -> bool:
        """Give a reservation back: reserved -= qty."""
        stmt = (
            update(Inventory)
            .where(
                Inventory.variant_id == variant_id,
                Inventory.reserved >= _qty(qty)
            )
            .values(reserved=Inventory.reserved - _qty(qty))
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def restock(variant_id: str, qty: Decimal, session: AsyncSession | Session) -> bool:
        """Return committed stock: quantity += qty."""
        stmt = (
            update(Inventory)
            .where(Inventory.variant_id == variant_id)
            .values(quantity=Inventory.quantity + _qty(qty))
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1
