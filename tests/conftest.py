"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.

The environment is set before anything imports config: tests run against a
throw-away SQLite file, a fake Paystack secret and cheap password hashing.
"""

import os
import sys
import tempfile
from dataclasses import dataclass
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

_test_db_dir = tempfile.mkdtemp(prefix="maikanwa-tests-")

os.environ["RUNTIME_ENVIRONMENT"] = "TEST"
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{_test_db_dir}/test.db"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_0123456789abcdef0123456789abcdef"
os.environ["PAYSTACK_CALLBACK_URL"] = ""
os.environ["SITE_URL"] = "http://shop.test"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["ORDER_EXPIRY_ENABLED"] = "false"
os.environ["REDIS_URL"] = ""
os.environ["CORS_ALLOWED_ORIGINS"] = ""

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from enums.item_unit import ItemUnit
from enums.product_status import ProductStatus
from enums.product_type import ProductType
from enums.user_role import UserRole
from models.category import Category
from models.inventory import Inventory
from models.product import Product, ProductImage, product_categories
from models.productVariant import ProductVariant
from models.shipping_method import ShippingMethod
from paystack_api.PaystackApiWrapper import PaystackResponse, PaystackApiWrapper

TEST_PASSWORD = "correct-horse-battery"
AUTHORIZATION_URL = "https://checkout.paystack.com/test-access-code"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def database():
    """Fresh schema per test in the SQLite file configured above."""
    import db
    from models import Base

    await db.create_db_and_tables()
    yield
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections must not outlive the test's event loop
    await db.engine.dispose()


@pytest_asyncio.fixture
async def session(database):
    from db import get_db_session

    async with get_db_session() as session:
        yield session


# ============================================================================
# Catalog Fixtures
# ============================================================================

@dataclass
class Catalog:
    fabric_variant_id: str
    kaftan_variant_id: str
    service_variant_id: str
    inactive_variant_id: str
    fabric_product_id: str
    kaftan_product_id: str
    shipping_method_id: str
    inactive_shipping_method_id: str


async def add_product(session, product_type: ProductType, title: str, slug: str, price_kobo: int,
                      stock: Decimal | None, unit: ItemUnit = ItemUnit.PIECE, min_qty: Decimal | None = None,
                      qty_step: Decimal | None = None, category_id: str | None = None,
                      image_url: str | None = None, status: ProductStatus = ProductStatus.PUBLISHED,
                      is_featured: bool = False, variant_active: bool = True) -> tuple[str, str]:
    """Product with one variant (and its inventory row when stock is given); returns (product id, variant id)."""
    from db import session_execute, session_flush
    from sqlalchemy import insert

    product = Product(type=product_type, status=status, title=title, slug=slug, currency="NGN",
                      base_price_kobo=price_kobo, is_featured=is_featured)
    session.add(product)
    await session_flush(session)
    if image_url:
        session.add(ProductImage(product_id=product.id, url=image_url, sort_order=0, is_primary=True))
    if category_id:
        await session_execute(insert(product_categories).values(product_id=product.id, category_id=category_id),
                              session)
    variant = ProductVariant(product_id=product.id, title=title, sku=f"SKU-{slug.upper()}", unit=unit,
                             min_qty=min_qty, qty_step=qty_step, price_kobo=price_kobo, is_active=variant_active)
    session.add(variant)
    await session_flush(session)
    if stock is not None:
        session.add(Inventory(variant_id=variant.id, quantity=stock, reserved=Decimal("0")))
        await session_flush(session)
    return product.id, variant.id


@pytest_asyncio.fixture
async def catalog(session) -> Catalog:
    """
    A fabric sold per yard (min 1, step 0.5, 10 yards in stock), a ready-made
    kaftan (3 in stock), a tailoring service without inventory, an inactive
    variant and two shipping methods (one inactive).
    """
    from db import session_commit, session_flush

    fabrics = Category(name="Fabrics", slug="fabrics", sort_order=0)
    ready_made = Category(name="Ready-made", slug="ready-made", sort_order=1)
    session.add_all([fabrics, ready_made])
    await session_flush(session)

    fabric_product_id, fabric_variant_id = await add_product(
        session, ProductType.FABRIC, "Ankara Premium Fabric", "ankara-premium", 500000, Decimal("10"),
        unit=ItemUnit.YARD, min_qty=Decimal("1"), qty_step=Decimal("0.5"), category_id=fabrics.id,
        image_url="https://drive.google.com/file/d/abc123XYZ/view?usp=sharing", is_featured=True,
    )
    kaftan_product_id, kaftan_variant_id = await add_product(
        session, ProductType.READY_MADE, "Men's Classic Kaftan", "mens-kaftan-classic", 2500000, Decimal("3"),
        category_id=ready_made.id, image_url="https://placehold.co/800x800?text=Kaftan",
    )
    _, service_variant_id = await add_product(
        session, ProductType.SERVICE, "Sew From Fabric Service", "sew-from-fabric", 1200000, None,
    )
    _, inactive_variant_id = await add_product(
        session, ProductType.CAP, "Retired Cap", "retired-cap", 300000, Decimal("5"), variant_active=False,
    )

    shipping = ShippingMethod(name="Standard Delivery", fee_kobo=250000, currency="NGN", sort_order=0)
    inactive_shipping = ShippingMethod(name="Old Courier", fee_kobo=100000, currency="NGN", sort_order=1,
                                       is_active=False)
    session.add_all([shipping, inactive_shipping])
    await session_flush(session)
    await session_commit(session)

    return Catalog(
        fabric_variant_id=fabric_variant_id,
        kaftan_variant_id=kaftan_variant_id,
        service_variant_id=service_variant_id,
        inactive_variant_id=inactive_variant_id,
        fabric_product_id=fabric_product_id,
        kaftan_product_id=kaftan_product_id,
        shipping_method_id=shipping.id,
        inactive_shipping_method_id=inactive_shipping.id,
    )


async def get_inventory(variant_id: str):
    """Inventory row as currently committed, read through a fresh session."""
    from db import get_db_session
    from repositories.inventory import InventoryRepository

    async with get_db_session() as session:
        return await InventoryRepository.get_by_variant_id(variant_id, session)


async def get_order(order_id: str):
    from db import get_db_session
    from repositories.order import OrderRepository

    async with get_db_session() as session:
        return await OrderRepository.get_by_id(order_id, session)


# ============================================================================
# User Fixtures
# ============================================================================

async def create_user(session, email: str, role: UserRole = UserRole.CUSTOMER, full_name: str | None = None):
    from db import session_commit
    from repositories.user import UserRepository
    from services.encryption import EncryptionService

    user = await UserRepository.create(email, EncryptionService.hash_password(TEST_PASSWORD), session,
                                       full_name=full_name, role=role)
    await session_commit(session)
    return user


@pytest_asyncio.fixture
async def customer(session):
    return await create_user(session, "amina@example.com", full_name="Amina Bello")


@pytest_asyncio.fixture
async def admin(session):
    return await create_user(session, "admin@maikanwa.com", role=UserRole.ADMIN, full_name="Store Admin")


async def login(client: httpx.AsyncClient, email: str, password: str = TEST_PASSWORD) -> httpx.Response:
    response = await client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response


# ============================================================================
# HTTP Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def client(database):
    """httpx client talking to the ASGI app in-process; cookies persist across calls."""
    from app import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    from middleware.rate_limit import set_redis

    client = FakeAsyncRedis(decode_responses=True)
    set_redis(client)
    yield client
    set_redis(None)
    await client.aclose()


# ============================================================================
# Paystack Fixtures
# ============================================================================

def paystack_init_response(ok: bool = True, authorization_url: str | None = AUTHORIZATION_URL,
                           http_status: int = 200) -> PaystackResponse:
    data = {"authorization_url": authorization_url, "access_code": "test-access-code"} if authorization_url else {}
    return PaystackResponse(
        ok=ok,
        http_status=http_status,
        payload={"status": ok, "message": "Authorization URL created" if ok else "Invalid key", "data": data},
        request={"amount": 0},
        authorization_url=authorization_url,
    )


def paystack_verify_response(reference: str, amount: int, status: str = "success", currency: str = "NGN",
                             ok: bool = True) -> PaystackResponse:
    return PaystackResponse(
        ok=ok,
        http_status=200 if ok else 400,
        payload={
            "status": ok,
            "message": "Verification successful",
            "data": {
                "id": 4099260516,
                "reference": reference,
                "status": status,
                "amount": amount,
                "currency": currency,
                "paid_at": "2024-05-01T10:15:00.000Z",
            },
        },
    )


@pytest.fixture
def paystack_init():
    """Successful hosted-page initialization; tests may change return_value."""
    mock = AsyncMock(return_value=paystack_init_response())
    with patch.object(PaystackApiWrapper, "initialize_transaction", new=mock):
        yield mock


@pytest.fixture
def paystack_verify():
    mock = AsyncMock()
    with patch.object(PaystackApiWrapper, "verify_transaction", new=mock):
        yield mock


# ============================================================================
# Order Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def pending_order(session, catalog, customer, paystack_init):
    """Paystack order of the customer: 2 yards of fabric + 1 kaftan + standard shipping (3,750,000 kobo)."""
    from models.checkout import CheckoutRequest
    from services.cart import CartService
    from services.checkout import CheckoutService

    cart, _ = await CartService.get_or_create_cart(customer.id, "browser-key", session)
    await CartService.add_item(cart, catalog.fabric_variant_id, 2, session)
    await CartService.add_item(cart, catalog.kaftan_variant_id, 1, session)
    return await CheckoutService.place_order(customer, None, CheckoutRequest.model_validate({
        "address": {"fullName": "Amina Bello", "addressLine1": "12 Allen Avenue", "city": "Ikeja"},
        "shippingMethodId": catalog.shipping_method_id,
    }), session)
