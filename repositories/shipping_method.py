from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.shipping_method import ShippingMethod, ShippingMethodDTO


class ShippingMethodRepository:
    @staticmethod
    async def get_active(session: AsyncSession | Session) -> list[ShippingMethodDTO]:
        stmt = select(ShippingMethod).where(ShippingMethod.is_active.is_(True)).order_by(
            ShippingMethod.sort_order.asc(), ShippingMethod.name.asc()
        )
        methods = await session_execute(stmt, session)
        return [ShippingMethodDTO.model_validate(method, from_attributes=True) for method in methods.scalars().all()]

    @staticmethod
    async def get_active_by_id(shipping_method_id: str, session: AsyncSession | Session) -> ShippingMethodDTO | None:
        stmt = select(ShippingMethod).where(
            ShippingMethod.id == shipping_method_id,
            ShippingMethod.is_active.is_(True)
        )
        method = await session_execute(stmt, session)
        method = method.scalar()
        if method is not None:
            return ShippingMethodDTO.model_validate(method, from_attributes=True)
        return None
