from trynex.extensions import db
from trynex.models import (
    Order,
    OrderStatus,
    PaymentMethod,
    Product,
    PromoCode,
)
from trynex.services import (
    OrderError,
    PromoCodeError,
    StatusTransitionError,
    StockError,
)
from trynex.services.pricing_service import (
    calculate_promo_discount,
    cart_totals,
    line_subtotal,
    to_money,
)
from datetime import datetime
import json
import logging
import re
import secrets
import string

logger = logging.getLogger(__name__)

TRACKING_PREFIX = 'TRN'
TRACKING_ALPHABET = string.ascii_uppercase + string.digits

# 01[3-9]XXXXXXXX with an optional +88 / 88 country prefix
PHONE_RE = re.compile(r'^(?:\+?88)?(01[3-9]\d{8})$')

STATUS_LABELS = {
    OrderStatus.PENDING: 'অপেক্ষমান',
    OrderStatus.PROCESSING: 'প্রসেসিং',
    OrderStatus.SHIPPED: 'পাঠানো হয়েছে',
    OrderStatus.DELIVERED: 'ডেলিভার হয়েছে',
    OrderStatus.CANCELLED: 'বাতিল',
    OrderStatus.COMPLETED: 'সম্পন্ন',
}

# Forward path an order moves along; cancellation is only possible before
# the parcel leaves.
STATUS_FLOW = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.COMPLETED,
]
CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}
TERMINAL_STATUSES = {OrderStatus.CANCELLED, OrderStatus.COMPLETED}

MOBILE_PAYMENT_METHODS = {
    PaymentMethod.BKASH,
    PaymentMethod.NAGAD,
    PaymentMethod.ROCKET,
}

REQUIRED_FIELDS = {
    'customer_name': 'নাম',
    'phone': 'ফোন নম্বর',
    'district': 'জেলা',
    'thana': 'থানা',
}


def generate_tracking_id(now=None):
    now = now or datetime.utcnow()
    while True:
        suffix = ''.join(secrets.choice(TRACKING_ALPHABET) for _ in range(6))
        tracking_id = f"{TRACKING_PREFIX}{now.strftime('%y%m%d')}{suffix}"
        if not Order.query.filter_by(tracking_id=tracking_id).first():
            return tracking_id


def normalize_phone(phone):
    """Return the 11-digit local form of a Bangladeshi mobile number."""
    if phone is None:
        return None
    cleaned = re.sub(r'[\s\-()]', '', str(phone))
    m = PHONE_RE.match(cleaned)
    return m.group(1) if m else None


def mask_phone(phone):
    if not phone or len(phone) < 7:
        return phone
    return f"{phone[:3]}{'*' * (len(phone) - 6)}{phone[-3:]}"


def parse_order_items(raw):
    """Decode stored line items.

    Older orders hold the items array JSON-encoded twice; anything that does
    not decode to a list is treated as empty.
    """
    value = raw
    for _ in range(3):
        if not isinstance(value, str):
            break
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Unparsable order items: %.80s", value)
            return []
    if isinstance(value, dict):
        return [value]
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def parse_status(value):
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise OrderError('অবৈধ অর্ডার স্ট্যাটাস')


def status_label(status):
    return STATUS_LABELS.get(status, status.value)


def can_transition(current, new):
    if current == new:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if new == OrderStatus.CANCELLED:
        return current in CANCELLABLE_STATUSES
    return STATUS_FLOW.index(new) > STATUS_FLOW.index(current)


def validate_payment_info(payment):
    payment = payment or {}
    if not isinstance(payment, dict):
        raise OrderError('পেমেন্টের তথ্য সঠিক নয়')

    method_value = str(payment.get('method') or '').strip().lower()
    try:
        method = PaymentMethod(method_value)
    except ValueError:
        raise OrderError('পেমেন্ট মেথড নির্বাচন করুন (বিকাশ/নগদ/রকেট)')

    transaction_id = str(payment.get('transaction_id') or '').strip()
    if method in MOBILE_PAYMENT_METHODS and not transaction_id:
        raise OrderError('ট্রানজেকশন আইডি প্রয়োজন')

    info = {'method': method.value}
    if transaction_id:
        info['transaction_id'] = transaction_id[:64]
    sender = payment.get('sender_number')
    if sender:
        info['sender_number'] = normalize_phone(sender) or str(sender)[:20]
    return info


def _coerce_quantity(value):
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise OrderError('পরিমাণ সঠিক নয়')
    if quantity <= 0:
        raise OrderError('পরিমাণ ০ এর বেশি হতে হবে')
    return quantity


def build_order_lines(requested_items):
    """Price ``requested_items`` from the catalogue.

    Returns ``(lines, products)`` where ``lines`` are the snapshots stored on
    the order and ``products`` maps product id to the locked row.
    """
    if not requested_items:
        raise OrderError('কার্ট খালি')

    products = {}
    needed = {}
    lines = []
    for raw in requested_items:
        if not isinstance(raw, dict):
            raise OrderError('অর্ডারের আইটেম সঠিক নয়')
        try:
            product_id = int(raw.get('product_id'))
        except (TypeError, ValueError):
            raise OrderError('পণ্য নির্বাচন করুন')
        quantity = _coerce_quantity(raw.get('quantity', 1))

        product = products.get(product_id)
        if product is None:
            product = Product.query.filter_by(
                id=product_id,
                is_active=True
            ).with_for_update().first()
            if product is None:
                raise OrderError('পণ্যটি পাওয়া যায়নি', 404)
            products[product_id] = product

        # Stock is counted across every line for the same product
        needed[product_id] = needed.get(product_id, 0) + quantity
        if product.stock < needed[product_id]:
            raise StockError(f'{product.name} পর্যাপ্ত স্টকে নেই')

        lines.append({
            'product_id': product.id,
            'name': product.name,
            'price': str(to_money(product.price)),
            'quantity': quantity,
            'subtotal': str(line_subtotal(product.price, quantity)),
            'image_url': product.image_url,
            'customization': raw.get('customization') or None,
        })

    return lines, products


def find_promo_code(code, lock=False):
    if not code:
        return None
    query = PromoCode.query.filter_by(code=str(code).strip().upper())
    if lock:
        # Checkout holds the row until commit so used_count stays exact
        query = query.with_for_update()
    return query.first()


def create_order(data, cart_items=None):
    """Validate a checkout submission and persist the order.

    Items come from ``data['items']`` or, when absent, ``cart_items`` (a list
    of dicts in the same shape). Prices are always taken from the catalogue.
    """
    data = data or {}

    for field, label in REQUIRED_FIELDS.items():
        if not str(data.get(field) or '').strip():
            raise OrderError(f'{label} প্রয়োজন')

    phone = normalize_phone(data.get('phone'))
    if not phone:
        raise OrderError('সঠিক মোবাইল নম্বর দিন (যেমন 01XXXXXXXXX)')

    payment_info = validate_payment_info(data.get('payment_info'))

    requested = data.get('items')
    if isinstance(requested, str):
        requested = parse_order_items(requested)
    if not requested:
        requested = cart_items or []

    lines, products = build_order_lines(requested)
    subtotal = sum(
        (to_money(line['subtotal']) for line in lines), to_money(0))

    promo = None
    discount = to_money(0)
    promo_input = str(data.get('promo_code') or '').strip()
    if promo_input:
        promo = find_promo_code(promo_input, lock=True)
        discount, error = calculate_promo_discount(promo, subtotal)
        if error:
            raise PromoCodeError(error)

    district = str(data['district']).strip()
    totals = cart_totals(
        ((line['price'], line['quantity']) for line in lines),
        district=district,
        discount=discount)

    for line in lines:
        products[line['product_id']].stock -= line['quantity']
    if promo is not None:
        promo.used_count = (promo.used_count or 0) + 1

    order = Order(
        tracking_id=generate_tracking_id(),
        customer_name=str(data['customer_name']).strip()[:120],
        phone=phone,
        email=str(data.get('email') or '').strip() or None,
        district=district,
        thana=str(data['thana']).strip(),
        address=str(data.get('address') or '').strip(),
        subtotal=totals['subtotal'],
        delivery_fee=totals['delivery_fee'],
        discount=totals['discount'],
        total=totals['total'],
        promo_code=promo.code if promo else None,
        status=OrderStatus.PENDING,
        custom_instructions=str(
            data.get('custom_instructions') or '').strip() or None,
    )
    order.set_items(lines)
    order.set_payment_info(payment_info)
    db.session.add(order)
    db.session.commit()

    logger.info(
        "Order %s created: %d lines, total %s",
        order.tracking_id, len(lines), order.total)
    return order


def restore_order_stock(order):
    for item in order.get_items():
        product = db.session.get(Product, item.get('product_id'))
        if product is None:
            continue
        try:
            product.stock += int(item.get('quantity', 0))
        except (TypeError, ValueError):
            continue


def change_order_status(order, new_status):
    """Move ``order`` to ``new_status``; returns False when nothing changed."""
    if not isinstance(new_status, OrderStatus):
        new_status = parse_status(new_status)

    current = order.status
    if current == new_status:
        return False

    if not can_transition(current, new_status):
        raise StatusTransitionError(
            f'"{status_label(current)}" থেকে "{status_label(new_status)}" '
            'স্ট্যাটাসে পরিবর্তন করা যাবে না')

    if new_status == OrderStatus.CANCELLED:
        restore_order_stock(order)

    order.status = new_status
    order.updated_at = datetime.utcnow()
    db.session.commit()

    logger.info(
        "Order %s status %s -> %s",
        order.tracking_id, current.value, new_status.value)
    return True
