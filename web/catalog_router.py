from fastapi import APIRouter, Request

from db import get_db_session
from services.catalog import CatalogService
from utils.api_response import api_ok
from utils.error_handler import safe_route

catalog_router = APIRouter(prefix="/api", tags=["catalog"])


@catalog_router.get("/categories")
@safe_route("Failed to fetch categories")
async def list_categories():
    async with get_db_session() as session:
        categories = await CatalogService.list_categories(session)
    return api_ok(categories)


@catalog_router.get("/products")
@safe_route("Failed to fetch products")
async def list_products(request: Request):
    """Published products; filters: ?category=<slug>&type=FABRIC&featured=true"""
    async with get_db_session() as session:
        products = await CatalogService.list_products(
            session,
            category_slug=request.query_params.get("category"),
            product_type=request.query_params.get("type"),
            featured=request.query_params.get("featured"),
        )
    return api_ok(products)


@catalog_router.get("/products/{slug}")
@safe_route("Failed to fetch product")
async def get_product(slug: str):
    async with get_db_session() as session:
        product = await CatalogService.get_product(slug, session)
    return api_ok(product)
