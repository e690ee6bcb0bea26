from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute
from enums.product_status import ProductStatus
from enums.product_type import ProductType
from models.category import Category
from models.product import Product, ProductDTO, ProductImage, ProductImageDTO, product_categories


class ProductRepository:
    @staticmethod
    async def get_published(session: AsyncSession | Session,
                            category_slug: str | None = None,
                            product_type: ProductType | None = None,
                            featured: bool | None = None) -> list[ProductDTO]:
        """Published products, newest first."""
        stmt = select(Product).where(Product.status == ProductStatus.PUBLISHED)
        if category_slug:
            stmt = stmt.join(
                product_categories, product_categories.c.product_id == Product.id
            ).join(
                Category, Category.id == product_categories.c.category_id
            ).where(Category.slug == category_slug)
        if product_type is not None:
            stmt = stmt.where(Product.type == product_type)
        if featured is not None:
            stmt = stmt.where(Product.is_featured.is_(featured))
        stmt = stmt.order_by(Product.created_at.desc())
        products = await session_execute(stmt, session)
        return [ProductDTO.model_validate(product, from_attributes=True) for product in products.scalars().all()]

    @staticmethod
    async def get_by_slug(slug: str, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.slug == slug)
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        return None

    @staticmethod
    async def get_by_ids(product_ids: list[str], session: AsyncSession | Session) -> dict[str, ProductDTO]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(product_ids))
        products = await session_execute(stmt, session)
        return {product.id: ProductDTO.model_validate(product, from_attributes=True)
                for product in products.scalars().all()}

    @staticmethod
    async def get_images(product_ids: list[str], session: AsyncSession | Session) -> dict[str, list[ProductImageDTO]]:
        """Images per product, primary first, then by sort order."""
        if not product_ids:
            return {}
        stmt = select(ProductImage).where(ProductImage.product_id.in_(product_ids)).order_by(
            ProductImage.is_primary.desc(), ProductImage.sort_order.asc()
        )
        images = await session_execute(stmt, session)
        result: dict[str, list[ProductImageDTO]] = {}
        for image in images.scalars().all():
            result.setdefault(image.product_id, []).append(ProductImageDTO.model_validate(image, from_attributes=True))
        return result
