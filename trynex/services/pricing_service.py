"""Money arithmetic shared by the cart, checkout and admin views.

All amounts are ``Decimal`` quantized to paisa (two places). Fee settings
come from the app config when an app context is active, otherwise the
module defaults apply.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from flask import current_app, has_app_context
from trynex.models import DiscountType
import logging

logger = logging.getLogger(__name__)

FREE_DELIVERY_THRESHOLD = 2000
DHAKA_DELIVERY_FEE = 80
OUTSIDE_DHAKA_DELIVERY_FEE = 120

DHAKA_NAMES = ('ঢাকা', 'dhaka')

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
# Largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal('99999999.99')


def to_money(value) -> Decimal:
    """Parse ``value`` (str/int/float/Decimal) into a two-place Decimal.

    Raises ValueError for anything that is not a finite number.
    """
    if value is None or value == '':
        raise ValueError('Amount is empty')
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            raise ValueError(f'Invalid amount: {value!r}')
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError):
        raise ValueError(f'Invalid amount: {value!r}')


def parse_amount(value) -> Decimal:
    """``to_money`` for client input; also rejects values a money column
    cannot store."""
    amount = to_money(value)
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f'Amount out of range: {value!r}')
    return amount


def money_str(value) -> str:
    return str(to_money(value if value is not None else 0))


def _setting(name, default):
    if has_app_context():
        return current_app.config.get(name, default)
    return default


def free_delivery_threshold() -> Decimal:
    return to_money(_setting('FREE_DELIVERY_THRESHOLD', FREE_DELIVERY_THRESHOLD))


def is_dhaka(district) -> bool:
    if not district:
        return False
    return str(district).strip().lower() in DHAKA_NAMES


def calculate_delivery_fee(district, subtotal) -> Decimal:
    subtotal = to_money(subtotal)
    if subtotal <= ZERO:
        return ZERO
    if subtotal >= free_delivery_threshold():
        return ZERO
    if is_dhaka(district):
        return to_money(_setting('DHAKA_DELIVERY_FEE', DHAKA_DELIVERY_FEE))
    return to_money(
        _setting('OUTSIDE_DHAKA_DELIVERY_FEE', OUTSIDE_DHAKA_DELIVERY_FEE))


def line_subtotal(price, quantity) -> Decimal:
    return (to_money(price) * int(quantity)).quantize(CENT)


def cart_totals(lines, district=None, discount=ZERO):
    """Totals for ``lines``, an iterable of ``(unit_price, quantity)``.

    The delivery fee is computed on the subtotal before discount, and the
    discount never exceeds the subtotal.
    """
    subtotal = ZERO
    total_items = 0
    for price, quantity in lines:
        subtotal += line_subtotal(price, quantity)
        total_items += int(quantity)

    discount = min(max(to_money(discount), ZERO), subtotal)
    delivery_fee = calculate_delivery_fee(district, subtotal)
    total = subtotal - discount + delivery_fee

    return {
        'subtotal': subtotal,
        'total_items': total_items,
        'delivery_fee': delivery_fee,
        'discount': discount,
        'total': total,
        'free_delivery_threshold': free_delivery_threshold(),
        'amount_to_free_delivery': max(
            free_delivery_threshold() - subtotal, ZERO),
    }


def calculate_promo_discount(promo, order_amount, now=None):
    """Return ``(discount, error)`` for applying ``promo`` to an order.

    ``error`` is a Bengali message when the code cannot be used, in which
    case the discount is zero.
    """
    now = now or datetime.utcnow()
    order_amount = to_money(order_amount)

    if promo is None or not promo.is_active:
        return ZERO, 'অবৈধ প্রোমো কোড'

    if promo.expires_at and promo.expires_at < now:
        return ZERO, 'প্রোমো কোডের মেয়াদ শেষ হয়ে গেছে'

    min_amount = to_money(promo.min_order_amount or 0)
    if order_amount < min_amount:
        return ZERO, f'সর্বনিম্ন অর্ডারের পরিমাণ {min_amount} টাকা'

    if promo.usage_limit is not None and \
            (promo.used_count or 0) >= promo.usage_limit:
        return ZERO, 'প্রোমো কোডের ব্যবহারের সীমা শেষ'

    value = to_money(promo.discount_value)
    if promo.discount_type == DiscountType.PERCENTAGE:
        discount = (order_amount * value / Decimal(100)).quantize(
            CENT, rounding=ROUND_HALF_UP)
    else:
        discount = value

    if promo.max_discount is not None:
        discount = min(discount, to_money(promo.max_discount))

    return min(discount, order_amount), None


def serialize_totals(totals):
    return {
        k: (str(v) if isinstance(v, Decimal) else v)
        for k, v in totals.items()
    }
