import logging

from fastapi import APIRouter, Request

from db import get_db_session
from services.cart import CartService
from utils.api_response import api_ok
from utils.error_handler import safe_route
from web.dependencies import get_current_user, get_guest_key, set_guest_cookie, read_json_body

logger = logging.getLogger(__name__)

cart_router = APIRouter(prefix="/api/cart", tags=["cart"])


@cart_router.get("")
@safe_route("Failed to fetch cart")
async def get_cart(request: Request):
    """Current cart; a guest without a cart cookie gets a new cart and cookie."""
    async with get_db_session() as session:
        user = await get_current_user(request, session)
        cart, guest_key_to_set = await CartService.get_or_create_cart(
            user.id if user else None, get_guest_key(request), session
        )
        cart_view = await CartService.get_cart_view(cart, session)

    response = api_ok(cart_view)
    if guest_key_to_set:
        set_guest_cookie(response, guest_key_to_set)
    return response


@cart_router.post("/items")
@safe_route("Failed to add item to cart")
async def add_cart_item(request: Request):
    """
    Add a variant to the cart.

    Request Body:
        {"variantId": "...", "quantity": "2.5", "attachedToCartItemId": "...", "meta": {...}}
    """
    body = await read_json_body(request)
    async with get_db_session() as session:
        user = await get_current_user(request, session)
        cart, guest_key_to_set = await CartService.get_or_create_cart(
            user.id if user else None, get_guest_key(request), session
        )
        await CartService.add_item(
            cart,
            body.get("variantId"),
            body.get("quantity"),
            session,
            attached_to_cart_item_id=body.get("attachedToCartItemId"),
            meta=body.get("meta"),
        )
        cart_view = await CartService.get_cart_view(cart, session)

    response = api_ok(cart_view)
    if guest_key_to_set:
        set_guest_cookie(response, guest_key_to_set)
    return response


@cart_router.patch("/items/{cart_item_id}")
@safe_route("Failed to update item")
async def update_cart_item(cart_item_id: str, request: Request):
    async with get_db_session() as session:
        user = await get_current_user(request, session)
        cart = await CartService.require_active_cart(user.id if user else None, get_guest_key(request), session)
        body = await read_json_body(request)
        await CartService.update_item(cart, cart_item_id, body.get("quantity"), session)
        cart_view = await CartService.get_cart_view(cart, session)
    return api_ok(cart_view)


@cart_router.delete("/items/{cart_item_id}")
@safe_route("Failed to remove item")
async def remove_cart_item(cart_item_id: str, request: Request):
    async with get_db_session() as session:
        user = await get_current_user(request, session)
        cart = await CartService.require_active_cart(user.id if user else None, get_guest_key(request), session)
        await CartService.remove_item(cart, cart_item_id, session)
        cart_view = await CartService.get_cart_view(cart, session)
    return api_ok(cart_view)
