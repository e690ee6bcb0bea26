from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from enums.product_status import ProductStatus
from models.category import Category, CategoryDTO
from models.product import Product, product_categories


class CategoryRepository:
    @staticmethod
    async def get_active_with_product_counts(session: AsyncSession | Session) -> list[tuple[CategoryDTO, int]]:
        """Active categories by sort order, each with its number of published products."""
        published_count = (
            select(func.count(Product.id))
            .select_from(product_categories.join(Product, Product.id == product_categories.c.product_id))
            .where(
                product_categories.c.category_id == Category.id,
                Product.status == ProductStatus.PUBLISHED
            )
            .correlate(Category)
            .scalar_subquery()
        )
        stmt = select(Category, published_count).where(
            Category.is_active.is_(True)
        ).order_by(Category.sort_order.asc(), Category.name.asc())
        rows = await session_execute(stmt, session)
        return [(CategoryDTO.model_validate(category, from_attributes=True), count or 0)
                for category, count in rows.all()]

    @staticmethod
    async def get_by_product_ids(product_ids: list[str],
                                 session: AsyncSession | Session) -> dict[str, list[CategoryDTO]]:
        if not product_ids:
            return {}
        stmt = select(product_categories.c.product_id, Category).join(
            Category, Category.id == product_categories.c.category_id
        ).where(product_categories.c.product_id.in_(product_ids)).order_by(Category.sort_order.asc())
        rows = await session_execute(stmt, session)
        result: dict[str, list[CategoryDTO]] = {}
        for product_id, category in rows.all():
            result.setdefault(product_id, []).append(CategoryDTO.model_validate(category, from_attributes=True))
        return result
