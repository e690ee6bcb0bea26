import logging
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.product_status import ProductStatus
from enums.product_type import ProductType
from exceptions.catalog import ProductNotFoundException
from models.category import CategoryView, CategoryRefView
from models.inventory import InventoryDTO
from models.product import ProductDTO, ProductListView, ProductDetailView, ProductImageView
from models.productVariant import ProductVariantDTO, VariantView
from repositories.category import CategoryRepository
from repositories.inventory import InventoryRepository
from repositories.product import ProductRepository
from repositories.productVariant import ProductVariantRepository
from utils.image_url import normalize_image_url

logger = logging.getLogger(__name__)


class VariantContext(BaseModel):
    """A variant with what cart and checkout rules need to know about it."""
    variant: ProductVariantDTO
    product: ProductDTO
    inventory: InventoryDTO | None = None
    image_url: str | None = None

    @property
    def is_stock_tracked(self) -> bool:
        """Services never count against stock; a variant without an inventory row is unlimited."""
        return self.product.type.is_stock_tracked and self.inventory is not None

    @property
    def available(self) -> Decimal | None:
        if not self.is_stock_tracked:
            return None
        return self.inventory.available

    def has_stock_for(self, qty: Decimal) -> bool:
        return not self.is_stock_tracked or self.inventory.available >= qty


class CatalogService:

    @staticmethod
    async def get_variant_contexts(variant_ids: list[str],
                                   session: AsyncSession | Session) -> dict[str, VariantContext]:
        """Variants (active or not) keyed by id, with product, inventory and primary image."""
        variant_ids = list(dict.fromkeys(variant_ids))
        variants = await ProductVariantRepository.get_by_ids(variant_ids, session)
        product_ids = list({variant.product_id for variant in variants.values()})
        products = await ProductRepository.get_by_ids(product_ids, session)
        inventories = await InventoryRepository.get_by_variant_ids(list(variants.keys()), session)
        images = await ProductRepository.get_images(product_ids, session)

        contexts = {}
        for variant_id, variant in variants.items():
            product = products.get(variant.product_id)
            if product is None:
                continue
            product_images = images.get(product.id) or []
            contexts[variant_id] = VariantContext(
                variant=variant,
                product=product,
                inventory=inventories.get(variant_id),
                image_url=normalize_image_url(product_images[0].url) if product_images else None,
            )
        return contexts

    @staticmethod
    async def get_variant_context(variant_id: str, session: AsyncSession | Session) -> VariantContext | None:
        contexts = await CatalogService.get_variant_contexts([variant_id], session)
        return contexts.get(variant_id)

    @staticmethod
    async def list_categories(session: AsyncSession | Session) -> list[CategoryView]:
        rows = await CategoryRepository.get_active_with_product_counts(session)
        return [
            CategoryView(
                id=category.id,
                name=category.name,
                slug=category.slug,
                sort_order=category.sort_order,
                product_count=count,
            )
            for category, count in rows
        ]

    @staticmethod
    def _in_stock(product: ProductDTO, variants: list[ProductVariantDTO],
                  inventories: dict[str, InventoryDTO]) -> bool:
        """Services and untracked products are always in stock; otherwise any variant with stock left."""
        if product.type == ProductType.SERVICE or not variants:
            return True
        for variant in variants:
            inventory = inventories.get(variant.id)
            if inventory is None or inventory.available > 0:
                return True
        return False

    @staticmethod
    async def list_products(session: AsyncSession | Session,
                            category_slug: str | None = None,
                            product_type: str | None = None,
                            featured: str | None = None) -> list[ProductListView]:
        # Unknown filter values are ignored rather than rejected
        type_filter = ProductType(product_type) if product_type in ProductType._value2member_map_ else None
        featured_filter = {"true": True, "false": False}.get(featured) if featured else None

        products = await ProductRepository.get_published(
            session,
            category_slug=category_slug or None,
            product_type=type_filter,
            featured=featured_filter,
        )
        product_ids = [product.id for product in products]
        images = await ProductRepository.get_images(product_ids, session)
        variants = await ProductVariantRepository.get_by_product_ids(product_ids, session)
        all_variant_ids = [variant.id for product_variants in variants.values() for variant in product_variants]
        inventories = await InventoryRepository.get_by_variant_ids(all_variant_ids, session)
        categories = await CategoryRepository.get_by_product_ids(product_ids, session)

        views = []
        for product in products:
            product_variants = variants.get(product.id) or []
            product_images = images.get(product.id) or []
            views.append(ProductListView(
                id=product.id,
                title=product.title,
                slug=product.slug,
                type=product.type,
                currency=product.currency,
                base_price_kobo=product.base_price_kobo,
                price_from_kobo=min((v.price_kobo for v in product_variants), default=product.base_price_kobo),
                is_featured=bool(product.is_featured),
                image=normalize_image_url(product_images[0].url) if product_images else None,
                categories=[CategoryRefView(name=c.name, slug=c.slug) for c in categories.get(product.id, [])],
                in_stock=CatalogService._in_stock(product, product_variants, inventories),
            ))
        return views

    @staticmethod
    async def get_product(slug: str, session: AsyncSession | Session) -> ProductDetailView:
        product = await ProductRepository.get_by_slug(slug, session)
        if product is None or product.status != ProductStatus.PUBLISHED:
            raise ProductNotFoundException(slug)

        images = (await ProductRepository.get_images([product.id], session)).get(product.id, [])
        variants = (await ProductVariantRepository.get_by_product_ids([product.id], session)).get(product.id, [])
        inventories = await InventoryRepository.get_by_variant_ids([v.id for v in variants], session)
        categories = (await CategoryRepository.get_by_product_ids([product.id], session)).get(product.id, [])

        tracked = product.type.is_stock_tracked
        return ProductDetailView(
            id=product.id,
            title=product.title,
            slug=product.slug,
            type=product.type,
            description=product.description,
            currency=product.currency,
            base_price_kobo=product.base_price_kobo,
            is_featured=bool(product.is_featured),
            attributes=product.attributes,
            images=[
                ProductImageView(url=normalize_image_url(image.url), alt_text=image.alt_text,
                                 is_primary=bool(image.is_primary))
                for image in images
            ],
            categories=[CategoryRefView(name=c.name, slug=c.slug) for c in categories],
            variants=[
                VariantView(
                    id=variant.id,
                    title=variant.title,
                    sku=variant.sku,
                    unit=variant.unit,
                    size=variant.size,
                    color=variant.color,
                    min_qty=variant.min_qty,
                    qty_step=variant.qty_step,
                    price_kobo=variant.price_kobo,
                    available=inventories[variant.id].available
                    if tracked and variant.id in inventories else None,
                )
                for variant in variants
            ],
            in_stock=CatalogService._in_stock(product, variants, inventories),
        )
