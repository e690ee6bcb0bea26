from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from models.productVariant import ProductVariant, ProductVariantDTO


class ProductVariantRepository:
    @staticmethod
    async def get_by_id(variant_id: str, session: AsyncSession | Session) -> ProductVariantDTO | None:
        stmt = select(ProductVariant).where(ProductVariant.id == variant_id)
        variant = await session_execute(stmt, session)
        variant = variant.scalar()
        if variant is not None:
            return ProductVariantDTO.model_validate(variant, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(variant_ids: list[str], session: AsyncSession | Session) -> dict[str, ProductVariantDTO]:
        if not variant_ids:
            return {}
        stmt = select(ProductVariant).where(ProductVariant.id.in_(variant_ids))
        variants = await session_execute(stmt, session)
        return {variant.id: ProductVariantDTO.model_validate(variant, from_attributes=True)
                for variant in variants.scalars().all()}

    @staticmethod
    async def get_by_product_ids(product_ids: list[str], session: AsyncSession | Session,
                                 active_only: bool = True) -> dict[str, list[ProductVariantDTO]]:
        """Variants per product, cheapest first."""
        if not product_ids:
            return {}
        stmt = select(ProductVariant).where(ProductVariant.product_id.in_(product_ids))
        if active_only:
            stmt = stmt.where(ProductVariant.is_active.is_(True))
        stmt = stmt.order_by(ProductVariant.price_kobo.asc(), ProductVariant.created_at.asc())
        variants = await session_execute(stmt, session)
        result: dict[str, list[ProductVariantDTO]] = {}
        for variant in variants.scalars().all():
            result.setdefault(variant.product_id, []).append(
                ProductVariantDTO.model_validate(variant, from_attributes=True)
            )
        return result
