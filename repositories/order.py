import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import OrderPaymentStatus
from models.order import Order, OrderDTO

logger = logging.getLogger(__name__)


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession | Session) -> OrderDTO:
        order = Order(**order_dto.model_dump(exclude_none=True))
        session.add(order)
        await session_flush(session)
        return OrderDTO.model_validate(order, from_attributes=True)

    @staticmethod
    async def get_by_id(order_id: str, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = select(Order).execution_options(populate_existing=True).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        return None

    @staticmethod
    async def get_by_short_code(short_code: str, session: AsyncSession | Session) -> OrderDTO | None:
        """Order whose id starts with the 8-hex short code (newest wins on a collision)."""
        stmt = select(Order).execution_options(populate_existing=True).where(Order.id.like(f"{short_code.lower()}%")).order_by(Order.created_at.desc())
        orders = await session_execute(stmt, session)
        orders = orders.scalars().all()
        if len(orders) > 1:
            logger.warning(f"Short order code {short_code} matches {len(orders)} orders, using the newest")
        if orders:
            return OrderDTO.model_validate(orders[0], from_attributes=True)
        return None

    @staticmethod
    async def get_by_user_id(user_id: str, session: AsyncSession | Session) -> list[OrderDTO]:
        stmt = select(Order).execution_options(populate_existing=True).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def get_paginated(session: AsyncSession | Session, limit: int = 50, offset: int = 0,
                            status: OrderStatus | None = None) -> tuple[list[OrderDTO], int]:
        """Newest first, plus the total count for the same filter."""
        stmt = select(Order).execution_options(populate_existing=True)
        count_stmt = select(func.count()).select_from(Order)
        if status is not None:
            stmt = stmt.where(Order.status == status)
            count_stmt = count_stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc()).limit(limit).offset(offset)
        orders = await session_execute(stmt, session)
        total = await session_execute(count_stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()], \
            total.scalar_one()

    @staticmethod
    async def get_expired_pending(cutoff, session: AsyncSession | Session) -> list[OrderDTO]:
        """Unpaid Paystack orders still waiting for payment, created before the cutoff."""
        stmt = select(Order).execution_options(populate_existing=True).where(
            Order.status == OrderStatus.PENDING_PAYMENT,
            Order.payment_status == OrderPaymentStatus.UNPAID,
            Order.payment_method == PaymentMethod.PAYSTACK,
            Order.created_at <= cutoff
        ).order_by(Order.created_at.asc())
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def transition(order_id: str, expected_status: OrderStatus, values: dict,
                         session: AsyncSession | Session) -> bool:
        """
        Conditional update guarded on the current status.

        Returns False when the order is no longer in expected_status
        (another request moved it first).
        """
        stmt = (
            update(Order)
            .where(Order.id == order_id, Order.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def update(order_id: str, values: dict, session: AsyncSession | Session) -> None:
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await session_execute(stmt, session)
