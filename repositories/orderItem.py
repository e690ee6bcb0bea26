from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.orderItem import OrderItem, OrderItemDTO


class OrderItemRepository:
    @staticmethod
    async def create_many(order_items: list[OrderItemDTO], session: AsyncSession | Session) -> list[OrderItemDTO]:
        rows = [OrderItem(**order_item.model_dump(exclude_none=True)) for order_item in order_items]
        session.add_all(rows)
        await session_flush(session)
        return [OrderItemDTO.model_validate(row, from_attributes=True) for row in rows]

    @staticmethod
    async def get_by_order_id(order_id: str, session: AsyncSession | Session) -> list[OrderItemDTO]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(
            OrderItem.created_at.asc(), OrderItem.id.asc()
        )
        order_items = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(order_item, from_attributes=True)
                for order_item in order_items.scalars().all()]

    @staticmethod
    async def get_by_order_ids(order_ids: list[str], session: AsyncSession | Session) -> dict[str, list[OrderItemDTO]]:
        if not order_ids:
            return {}
        stmt = select(OrderItem).where(OrderItem.order_id.in_(order_ids)).order_by(
            OrderItem.created_at.asc(), OrderItem.id.asc()
        )
        order_items = await session_execute(stmt, session)
        result: dict[str, list[OrderItemDTO]] = {}
        for order_item in order_items.scalars().all():
            result.setdefault(order_item.order_id, []).append(
                OrderItemDTO.model_validate(order_item, from_attributes=True)
            )
        return result

    @staticmethod
    async def count_by_order_ids(order_ids: list[str], session: AsyncSession | Session) -> dict[str, int]:
        if not order_ids:
            return {}
        stmt = select(OrderItem.order_id, func.count(OrderItem.id)).where(
            OrderItem.order_id.in_(order_ids)
        ).group_by(OrderItem.order_id)
        rows = await session_execute(stmt, session)
        return {order_id: count for order_id, count in rows.all()}
