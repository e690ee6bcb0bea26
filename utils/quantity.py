"""
Quantity rules for cart lines and order items.

Quantities are fixed-point decimals with two fractional digits. Fabric is sold
by length (e.g. 2.5 yards), everything else in whole units. Variants may carry
a minimum quantity and a step; a valid quantity is the minimum itself or the
minimum plus a whole number of steps.
"""
import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from enums.product_type import ProductType
from exceptions.cart import InvalidQuantityException

QUANTITY_PATTERN = re.compile(r"^\d+(\.\d+)?$")
QUANTITY_PLACES = 2
# Larger values cannot be stored as scaled integers and no line is ever that big
MAX_QUANTITY = Decimal("1000000")


def format_quantity(qty: Decimal | None) -> str | None:
    """Render a quantity without trailing zeros: Decimal('2.50') -> '2.5', Decimal('100') -> '100'."""
    if qty is None:
        return None
    return format(Decimal(qty).normalize(), 'f')


def parse_quantity(value) -> Decimal | None:
    """
    Parse a client-supplied quantity.

    Accepts finite non-negative numbers and digit strings such as "2" or "2.50".
    Returns None for anything else (booleans, negatives, NaN, empty strings).

    Raises:
        InvalidQuantityException: more than two significant fractional digits,
            or more than MAX_QUANTITY
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        if value < 0:
            return None
        qty = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text or not QUANTITY_PATTERN.match(text):
            return None
        try:
            qty = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if qty > MAX_QUANTITY:
        raise InvalidQuantityException(f"Quantity cannot exceed {format_quantity(MAX_QUANTITY)}", quantity=value)

    normalized = qty.normalize()
    if normalized.as_tuple().exponent < -QUANTITY_PLACES:
        raise InvalidQuantityException("Quantity can have at most 2 decimal places", quantity=value)
    return qty.quantize(Decimal(1).scaleb(-QUANTITY_PLACES))


def is_whole(qty: Decimal) -> bool:
    return qty % 1 == 0


def check_step_rule(qty: Decimal, min_qty: Decimal | None, step: Decimal | None) -> None:
    """
    Enforce the minimum and step rules of a variant.

    Raises:
        InvalidQuantityException: with the client-facing reason
    """
    if qty <= 0:
        raise InvalidQuantityException("Quantity must be greater than 0", quantity=qty)

    if qty > MAX_QUANTITY:
        raise InvalidQuantityException(f"Quantity cannot exceed {format_quantity(MAX_QUANTITY)}", quantity=qty)

    if min_qty is not None and qty < min_qty:
        raise InvalidQuantityException(f"Minimum quantity is {format_quantity(min_qty)}", quantity=qty)

    if step is not None and step > 0:
        base = min_qty if min_qty is not None and min_qty > 0 else Decimal(0)
        diff = qty - base
        if diff == 0:
            return
        if not is_whole(diff / step):
            min_text = format_quantity(min_qty) if min_qty is not None else "0"
            raise InvalidQuantityException(
                f"Quantity must follow step rules (min: {min_text}, step: {format_quantity(step)})",
                quantity=qty
            )


def validate_line_quantity(qty: Decimal, product_type: ProductType,
                           min_qty: Decimal | None, step: Decimal | None,
                           whole_number_message: str = "Quantity must be a whole number for this item") -> None:
    """Whole-number rule for non-fabric products, then the variant's step rule."""
    if not product_type.allows_fractional_quantity and not is_whole(qty):
        raise InvalidQuantityException(whole_number_message, quantity=qty)
    check_step_rule(qty, min_qty, step)


def line_total_kobo(price_kobo: int, qty: Decimal) -> int:
    """price x quantity, rounded half-up to a whole kobo amount."""
    return int((Decimal(price_kobo) * qty).quantize(Decimal(1), rounding=ROUND_HALF_UP))
