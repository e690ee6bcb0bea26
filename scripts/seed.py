#!/usr/bin/env python3
"""
Seed the store with an admin account and a small demo catalog.

Creates (or refreshes) the admin user from SEED_ADMIN_EMAIL /
SEED_ADMIN_PASSWORD, the main categories, a fabric sold per yard, a
ready-made kaftan, a tailoring service and two shipping methods. Safe to
run repeatedly: existing rows are matched by email, slug, sku or name.

Usage:
    python scripts/seed.py
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select, insert, update

import config
from db import create_db_and_tables, get_db_session, session_commit, session_execute, session_flush
from enums.item_unit import ItemUnit
from enums.product_status import ProductStatus
from enums.product_type import ProductType
from enums.user_role import UserRole
from models.category import Category
from models.inventory import Inventory
from models.product import Product, ProductImage, product_categories
from models.productVariant import ProductVariant
from models.shipping_method import ShippingMethod
from models.user import User
from repositories.user import UserRepository
from services.encryption import EncryptionService

DEFAULT_ADMIN_PASSWORD = "ChangeMe123!"

CATEGORIES = [
    ("Fabrics", "fabrics"),
    ("Ready-made", "ready-made"),
    ("Caps", "caps"),
    ("Shoes", "shoes"),
    ("Tailoring Services", "tailoring-services"),
]

PRODUCTS = [
    {
        "type": ProductType.FABRIC,
        "title": "Ankara Premium Fabric",
        "slug": "ankara-premium",
        "base_price_kobo": 500000,
        "attributes": {"fabricType": "Ankara", "pattern": "Mixed"},
        "category": "fabrics",
        "image": ("https://placehold.co/800x800?text=Ankara", "Ankara fabric"),
        "variant": {
            "title": "Per Yard",
            "sku": "FAB-ANKARA-YARD",
            "unit": ItemUnit.YARD,
            "min_qty": Decimal("1"),
            "qty_step": Decimal("1"),
            "price_kobo": 500000,
        },
        "inventory": (Decimal("120"), Decimal("10")),
    },
    {
        "type": ProductType.READY_MADE,
        "title": "Men's Classic Kaftan",
        "slug": "mens-kaftan-classic",
        "base_price_kobo": None,
        "attributes": None,
        "category": "ready-made",
        "image": ("https://placehold.co/800x800?text=Kaftan", "Kaftan"),
        "variant": {
            "title": "M / Black",
            "sku": "RM-KAFTAN-M-BLACK",
            "unit": ItemUnit.PIECE,
            "size": "M",
            "color": "Black",
            "price_kobo": 2500000,
        },
        "inventory": (Decimal("15"), Decimal("3")),
    },
    {
        "type": ProductType.SERVICE,
        "title": "Sew From Fabric Service",
        "slug": "sew-from-fabric",
        "base_price_kobo": 1200000,
        "attributes": {"serviceType": "SEW_FROM_FABRIC"},
        "category": "tailoring-services",
        "image": ("https://placehold.co/800x800?text=Tailoring", "Tailoring"),
        "variant": {
            "title": "Standard Sewing",
            "sku": "SRV-SEW-FABRIC",
            "unit": ItemUnit.PIECE,
            "price_kobo": 1200000,
        },
        # Services are never stock-checked, the row only documents capacity
        "inventory": (Decimal("999999"), Decimal("1")),
    },
]

SHIPPING_METHODS = [
    {"name": "Standard Delivery (Lagos)", "fee_kobo": 250000, "sort_order": 0,
     "rules": {"region": "Lagos", "etaDays": "1-3"}},
    {"name": "Interstate Delivery", "fee_kobo": 500000, "sort_order": 1,
     "rules": {"region": "Outside Lagos", "etaDays": "3-7"}},
]


async def seed_admin(session) -> None:
    email = config.SEED_ADMIN_EMAIL.strip().lower()
    password_hash = EncryptionService.hash_password(config.SEED_ADMIN_PASSWORD or DEFAULT_ADMIN_PASSWORD)
    existing = await UserRepository.get_by_email(email, session)
    if existing is None:
        await UserRepository.create(email, password_hash, session, full_name="Maikanwa Admin", role=UserRole.ADMIN)
        print(f"👤 Admin {email} created")
    else:
        await session_execute(
            update(User).where(User.id == existing.id)
            .values(role=UserRole.ADMIN, password_hash=password_hash, is_active=True),
            session,
        )
        print(f"👤 Admin {email} refreshed")
    if not config.SEED_ADMIN_PASSWORD:
        print(f"⚠️  SEED_ADMIN_PASSWORD not set, admin password is {DEFAULT_ADMIN_PASSWORD} - change it!")


async def seed_categories(session) -> dict[str, str]:
    category_ids = {}
    for sort_order, (name, slug) in enumerate(CATEGORIES):
        result = await session_execute(select(Category).where(Category.slug == slug), session)
        category = result.scalar_one_or_none()
        if category is None:
            category = Category(name=name, slug=slug, sort_order=sort_order)
            session.add(category)
            await session_flush(session)
        category.is_active = True
        category_ids[slug] = category.id
    print(f"📂 {len(category_ids)} categories ready")
    return category_ids


async def seed_product(definition: dict, category_ids: dict[str, str], session) -> None:
    result = await session_execute(select(Product).where(Product.slug == definition["slug"]), session)
    product = result.scalar_one_or_none()
    if product is None:
        product = Product(
            type=definition["type"],
            status=ProductStatus.PUBLISHED,
            title=definition["title"],
            slug=definition["slug"],
            currency=config.DEFAULT_CURRENCY,
            base_price_kobo=definition["base_price_kobo"],
            attributes=definition["attributes"],
        )
        session.add(product)
        await session_flush(session)
        url, alt_text = definition["image"]
        session.add(ProductImage(product_id=product.id, url=url, alt_text=alt_text, sort_order=0, is_primary=True))
        await session_execute(
            insert(product_categories).values(product_id=product.id, category_id=category_ids[definition["category"]]),
            session,
        )
    product.status = ProductStatus.PUBLISHED

    variant_values = definition["variant"]
    result = await session_execute(select(ProductVariant).where(ProductVariant.sku == variant_values["sku"]), session)
    variant = result.scalar_one_or_none()
    if variant is None:
        variant = ProductVariant(product_id=product.id, **variant_values)
        session.add(variant)
        await session_flush(session)
        quantity, low_stock_at = definition["inventory"]
        session.add(Inventory(variant_id=variant.id, quantity=quantity, reserved=Decimal("0"),
                              low_stock_at=low_stock_at))
    variant.is_active = True
    variant.price_kobo = variant_values["price_kobo"]
    await session_flush(session)
    print(f"🧵 {definition['title']} ({variant_values['sku']}) ready")


async def seed_shipping_methods(session) -> None:
    for method in SHIPPING_METHODS:
        result = await session_execute(select(ShippingMethod).where(ShippingMethod.name == method["name"]), session)
        if result.scalar_one_or_none() is None:
            session.add(ShippingMethod(currency=config.DEFAULT_CURRENCY, **method))
    await session_flush(session)
    print(f"🚚 {len(SHIPPING_METHODS)} shipping methods ready")


async def seed():
    print("🌱 Seeding Maikanwa store...")
    await create_db_and_tables()
    async with get_db_session() as session:
        await seed_admin(session)
        category_ids = await seed_categories(session)
        for product_definition in PRODUCTS:
            await seed_product(product_definition, category_ids, session)
        await seed_shipping_methods(session)
        await session_commit(session)
    print("✅ Seed complete")


async def main():
    try:
        await seed()
    except Exception as e:
        print(f"❌ Seed failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
