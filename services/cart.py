import logging
import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit
from exceptions.base import InvalidRequestException
from exceptions.cart import CartNotFoundException, CartItemNotFoundException, StockExceededException, \
    InvalidCartStateException
from exceptions.catalog import VariantNotFoundException
from models.cart import CartDTO, CartView, CartLineView, CartVariantView, CartProductView
from models.cartItem import CartItemDTO
from enums.cart_status import CartStatus
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from services.catalog import CatalogService, VariantContext
from utils.quantity import parse_quantity, validate_line_quantity, line_total_kobo

logger = logging.getLogger(__name__)


class CartService:

    @staticmethod
    def new_guest_key() -> str:
        return str(uuid.uuid4())

    @staticmethod
    async def get_or_create_cart(user_id: str | None, guest_key: str | None,
                                 session: AsyncSession | Session) -> tuple[CartDTO, str | None]:
        """
        Resolve the cart of the request, creating it when needed.

        Logged-in: newest ACTIVE cart of the user, with the ACTIVE guest cart of
        this browser merged into it. Guest: the cart of the guest key whatever
        its status; an ORDERED one is reactivated empty.

        Returns:
            (cart, guest key to set as cookie, or None when the request had one)
        """
        guest_key_to_set = None
        if not guest_key:
            guest_key = CartService.new_guest_key()
            guest_key_to_set = guest_key

        if user_id:
            cart = await CartRepository.get_active_for_user(user_id, session)
            if cart is None:
                cart = await CartRepository.create(session, user_id=user_id, currency=config.DEFAULT_CURRENCY)
                logger.info(f"🛒 Created cart {cart.id} for user {user_id}")
            if guest_key_to_set is None:
                guest_cart = await CartRepository.get_active_guest_cart(guest_key, session)
                if guest_cart is not None and guest_cart.id != cart.id:
                    await CartService.merge_carts(guest_cart.id, cart.id, session)
            await session_commit(session)
            return cart, guest_key_to_set

        cart = await CartRepository.get_by_guest_key(guest_key, session)
        if cart is None:
            cart = await CartRepository.create(session, guest_key=guest_key, currency=config.DEFAULT_CURRENCY)
            logger.info(f"🛒 Created guest cart {cart.id}")
        elif cart.status != CartStatus.ACTIVE:
            await CartRepository.reactivate(cart.id, session)
            cart.status = CartStatus.ACTIVE
            logger.info(f"🛒 Reactivated guest cart {cart.id} (previous lines belong to the placed order)")
        await session_commit(session)
        return cart, guest_key_to_set

    @staticmethod
    async def get_active_cart(user_id: str | None, guest_key: str | None,
                              session: AsyncSession | Session) -> CartDTO | None:
        """Active cart without creating one (used by item updates, removals and checkout)."""
        if user_id:
            return await CartRepository.get_active_for_user(user_id, session)
        if not guest_key:
            return None
        return await CartRepository.get_active_guest_cart(guest_key, session)

    @staticmethod
    async def require_active_cart(user_id: str | None, guest_key: str | None,
                                  session: AsyncSession | Session) -> CartDTO:
        cart = await CartService.get_active_cart(user_id, guest_key, session)
        if cart is None:
            raise CartNotFoundException()
        return cart

    @staticmethod
    async def merge_carts(from_cart_id: str, to_cart_id: str, session: AsyncSession | Session) -> None:
        """
        Move every line of one cart into another and delete the source cart.

        Root lines go first so attached lines can be re-parented through the
        old -> new id map. A line with the same (variant, parent) in the target
        is combined by adding quantities.
        """
        from_items = await CartItemRepository.get_by_cart_id(from_cart_id, session)
        id_map: dict[str, str] = {}

        root_items = [item for item in from_items if item.attached_to_cart_item_id is None]
        attached_items = [item for item in from_items if item.attached_to_cart_item_id is not None]

        for item in root_items + attached_items:
            parent_id = None
            if item.attached_to_cart_item_id is not None:
                parent_id = id_map.get(item.attached_to_cart_item_id)
            existing = await CartItemRepository.find_line(to_cart_id, item.variant_id, parent_id, session)
            if existing is not None:
                await CartItemRepository.update_quantity(existing.id, existing.quantity + item.quantity, session)
                id_map[item.id] = existing.id
            else:
                created = await CartItemRepository.create(CartItemDTO(
                    cart_id=to_cart_id,
                    variant_id=item.variant_id,
                    quantity=item.quantity,
                    attached_to_cart_item_id=parent_id,
                    meta=item.meta,
                ), session)
                id_map[item.id] = created.id

        await CartRepository.delete(from_cart_id, session)
        await CartRepository.touch(to_cart_id, session)
        logger.info(f"🔀 Merged cart {from_cart_id} into {to_cart_id} ({len(from_items)} lines)")

    @staticmethod
    async def merge_guest_cart(user_id: str, guest_key: str | None, session: AsyncSession | Session) -> None:
        """Called at login: fold the browser's guest cart into the user's cart."""
        if not guest_key:
            return
        guest_cart = await CartRepository.get_active_guest_cart(guest_key, session)
        if guest_cart is None:
            return
        user_cart = await CartRepository.get_active_for_user(user_id, session)
        if user_cart is None:
            user_cart = await CartRepository.create(session, user_id=user_id, currency=guest_cart.currency)
        if guest_cart.id != user_cart.id:
            await CartService.merge_carts(guest_cart.id, user_cart.id, session)

    @staticmethod
    def _check_line(context: VariantContext, qty: Decimal) -> None:
        validate_line_quantity(qty, context.product.type, context.variant.min_qty, context.variant.qty_step)
        if not context.has_stock_for(qty):
            raise StockExceededException(context.variant.id, qty, context.available)

    @staticmethod
    async def _get_active_variant(variant_id: str, session: AsyncSession | Session) -> VariantContext:
        context = await CatalogService.get_variant_context(variant_id, session)
        if context is None or not context.variant.is_active:
            raise VariantNotFoundException(variant_id)
        return context

    @staticmethod
    async def add_item(cart: CartDTO, variant_id, quantity, session: AsyncSession | Session,
                       attached_to_cart_item_id=None, meta=None) -> CartItemDTO:
        """
        Add a variant to the cart, or top up the matching line.

        Raises:
            InvalidRequestException: missing variantId / quantity
            VariantNotFoundException: unknown or inactive variant
            InvalidQuantityException: whole-number or step rule broken
            StockExceededException: more than available (the combined quantity when topping up)
            InvalidCartStateException: parent line is not in this cart
        """
        variant_id = variant_id if isinstance(variant_id, str) and variant_id else None
        if variant_id is None:
            raise InvalidRequestException("variantId is required", field="variantId")
        qty = parse_quantity(quantity)
        if qty is None:
            raise InvalidRequestException("quantity is required", field="quantity")
        attached_to_cart_item_id = attached_to_cart_item_id if isinstance(attached_to_cart_item_id, str) else None
        meta = meta if isinstance(meta, dict) else None

        context = await CartService._get_active_variant(variant_id, session)
        CartService._check_line(context, qty)

        if attached_to_cart_item_id is not None:
            parent = await CartItemRepository.get_in_cart(attached_to_cart_item_id, cart.id, session)
            if parent is None:
                raise InvalidCartStateException("attachedToCartItemId is invalid for this cart", cart_id=cart.id)

        existing = await CartItemRepository.find_line(cart.id, variant_id, attached_to_cart_item_id, session)
        if existing is not None:
            combined = existing.quantity + qty
            if not context.has_stock_for(combined):
                raise StockExceededException(variant_id, combined, context.available)
            await CartItemRepository.update_quantity(existing.id, combined, session, meta=meta)
            existing.quantity = combined
            if meta is not None:
                existing.meta = meta
            cart_item = existing
        else:
            cart_item = await CartItemRepository.create(CartItemDTO(
                cart_id=cart.id,
                variant_id=variant_id,
                quantity=qty,
                attached_to_cart_item_id=attached_to_cart_item_id,
                meta=meta,
            ), session)

        await CartRepository.touch(cart.id, session)
        await session_commit(session)
        return cart_item

    @staticmethod
    async def update_item(cart: CartDTO, cart_item_id: str, quantity, session: AsyncSession | Session) -> None:
        qty = parse_quantity(quantity)
        if qty is None:
            raise InvalidRequestException("quantity is required", field="quantity")

        cart_item = await CartItemRepository.get_in_cart(cart_item_id, cart.id, session)
        if cart_item is None:
            raise CartItemNotFoundException(cart_item_id)

        context = await CartService._get_active_variant(cart_item.variant_id, session)
        CartService._check_line(context, qty)

        await CartItemRepository.update_quantity(cart_item.id, qty, session)
        await CartRepository.touch(cart.id, session)
        await session_commit(session)

    @staticmethod
    async def remove_item(cart: CartDTO, cart_item_id: str, session: AsyncSession | Session) -> None:
        """Remove a line together with every line attached to it."""
        cart_item = await CartItemRepository.get_in_cart(cart_item_id, cart.id, session)
        if cart_item is None:
            raise CartItemNotFoundException(cart_item_id)
        await CartItemRepository.delete_with_attached(cart_item.id, cart.id, session)
        await CartRepository.touch(cart.id, session)
        await session_commit(session)

    @staticmethod
    async def get_cart_view(cart: CartDTO, session: AsyncSession | Session) -> CartView:
        cart_items = await CartItemRepository.get_by_cart_id(cart.id, session)
        contexts = await CatalogService.get_variant_contexts([item.variant_id for item in cart_items], session)

        subtotal_kobo = 0
        lines = []
        for cart_item in cart_items:
            context = contexts.get(cart_item.variant_id)
            if context is None:
                logger.warning(f"Cart {cart.id} line {cart_item.id} points at missing variant {cart_item.variant_id}")
                continue
            line_total = line_total_kobo(context.variant.price_kobo, cart_item.quantity)
            subtotal_kobo += line_total
            lines.append(CartLineView(
                id=cart_item.id,
                quantity=cart_item.quantity,
                attached_to_cart_item_id=cart_item.attached_to_cart_item_id,
                meta=cart_item.meta,
                in_stock=context.has_stock_for(cart_item.quantity),
                line_total_kobo=line_total,
                variant=CartVariantView(
                    id=context.variant.id,
                    price_kobo=context.variant.price_kobo,
                    unit=context.variant.unit,
                    product=CartProductView(
                        id=context.product.id,
                        title=context.product.title,
                        slug=context.product.slug,
                        type=context.product.type,
                        image=context.image_url,
                    ),
                ),
            ))

        return CartView(id=cart.id, currency=cart.currency, subtotal_kobo=subtotal_kobo, items=lines)
