from flask import Blueprint, request, jsonify, session
from trynex.extensions import db
from trynex.models import Cart, CartItem, Product
from trynex.services.pricing_service import (
    cart_totals,
    line_subtotal,
    serialize_totals,
    to_money,
)
from trynex.utils import error_response, get_json_body, media_url
import json
import logging
import secrets

logger = logging.getLogger(__name__)

bp = Blueprint('cart', __name__)

CART_SESSION_KEY = 'cart_token'
CUSTOMIZATION_KEYS = (
    'text',
    'color',
    'size',
    'font',
    'instructions',
    'uploaded_images',
)


def get_session_cart(create=False):
    token = session.get(CART_SESSION_KEY)
    cart = Cart.query.filter_by(token=token).first() if token else None
    if cart is None and create:
        cart = Cart(token=secrets.token_hex(16))
        db.session.add(cart)
        db.session.flush()
        session[CART_SESSION_KEY] = cart.token
        session.permanent = True
    return cart


def available_items(cart):
    """Cart lines whose product is still on sale."""
    if cart is None:
        return []
    return [item for item in cart.items
            if item.product is not None and item.product.is_active]


def cart_lines_for_checkout(cart):
    """Cart contents in the shape order_service.create_order accepts."""
    return [{
        'product_id': item.product_id,
        'quantity': item.quantity,
        'customization': item.get_customization(),
    } for item in available_items(cart)]


def clean_customization(raw):
    if not raw:
        return None
    if not isinstance(raw, dict):
        raise ValueError('কাস্টমাইজেশনের তথ্য সঠিক নয়')
    cleaned = {}
    for key in CUSTOMIZATION_KEYS:
        value = raw.get(key)
        if value in (None, '', []):
            continue
        if key == 'uploaded_images':
            if not isinstance(value, list):
                raise ValueError('কাস্টমাইজেশনের তথ্য সঠিক নয়')
            cleaned[key] = [str(v) for v in value][:5]
        else:
            cleaned[key] = str(value)[:500]
    return cleaned or None


def cart_payload(cart, district=None):
    # Lines are priced from the catalogue, as checkout does
    items = available_items(cart)
    items_payload = []
    for item in items:
        product = item.product
        items_payload.append({
            'id': item.id,
            'product_id': item.product_id,
            'name': product.name,
            'price': str(to_money(product.price)),
            'quantity': item.quantity,
            'subtotal': str(line_subtotal(product.price, item.quantity)),
            'image_url': media_url(product.image_url),
            'stock': product.stock,
            'customization': item.get_customization(),
        })

    totals = cart_totals(
        ((item.product.price, item.quantity) for item in items),
        district=district)

    payload = {'items': items_payload}
    payload.update(serialize_totals(totals))
    return payload


@bp.route('/api/cart', methods=['GET'])
def get_cart():
    cart = get_session_cart()
    return jsonify(cart_payload(cart, request.args.get('district')))


@bp.route('/api/cart/items', methods=['POST'])
def add_cart_item():
    data = get_json_body()
    product_id = data.get('product_id')
    quantity = data.get('quantity', 1)

    if not product_id:
        return error_response('পণ্য নির্বাচন করুন')

    if not isinstance(quantity, int) or quantity <= 0:
        return error_response('পরিমাণ ০ এর বেশি হতে হবে')

    try:
        customization = clean_customization(data.get('customization'))
    except ValueError as e:
        return error_response(str(e))

    product = Product.query.filter_by(
        id=product_id,
        is_active=True
    ).first()
    if product is None:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)

    cart = get_session_cart(create=True)

    # Same product with identical customization merges into one line
    customization_json = json.dumps(
        customization, ensure_ascii=False, sort_keys=True) \
        if customization else None
    cart_item = CartItem.query.filter_by(
        cart_id=cart.id,
        product_id=product.id,
        customization_json=customization_json
    ).first()

    in_cart = sum(
        i.quantity for i in cart.items if i.product_id == product.id)
    if in_cart + quantity > product.stock:
        db.session.rollback()
        return error_response('পর্যাপ্ত স্টক নেই')

    if cart_item:
        cart_item.quantity += quantity
    else:
        cart_item = CartItem(
            cart_id=cart.id,
            product_id=product.id,
            quantity=quantity,
            unit_price=product.price,
            product_name=product.name
        )
        cart_item.set_customization(customization)
        db.session.add(cart_item)

    db.session.commit()
    logger.info(
        "Cart %s: added product %s x%s", cart.id, product.id, quantity)

    return jsonify({
        'ok': True,
        'cart_item': {
            'id': cart_item.id,
            'product_id': cart_item.product_id,
            'quantity': cart_item.quantity
        },
        'cart': cart_payload(cart)
    }), 201


def _get_own_item(item_id):
    cart = get_session_cart()
    if cart is None:
        return None, None
    item = CartItem.query.filter_by(id=item_id, cart_id=cart.id).first()
    return cart, item


@bp.route('/api/cart/items/<int:item_id>', methods=['PATCH', 'PUT'])
def update_cart_item(item_id):
    data = get_json_body()
    quantity = data.get('quantity')

    if quantity is None:
        return error_response('পরিমাণ প্রয়োজন')

    if not isinstance(quantity, int) or quantity <= 0:
        return error_response('পরিমাণ ০ এর বেশি হতে হবে')

    cart, cart_item = _get_own_item(item_id)
    if cart_item is None:
        return error_response('কার্টে আইটেমটি পাওয়া যায়নি', 404)

    product = cart_item.product
    if product is None or not product.is_active:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)

    other_lines = sum(
        i.quantity for i in cart.items
        if i.product_id == cart_item.product_id and i.id != cart_item.id)
    if other_lines + quantity > product.stock:
        return error_response('পর্যাপ্ত স্টক নেই')

    cart_item.quantity = quantity
    db.session.commit()

    return jsonify({
        'ok': True,
        'cart_item': {
            'id': cart_item.id,
            'product_id': cart_item.product_id,
            'quantity': cart_item.quantity
        },
        'cart': cart_payload(cart)
    })


@bp.route('/api/cart/items/<int:item_id>', methods=['DELETE'])
def delete_cart_item(item_id):
    cart, cart_item = _get_own_item(item_id)
    if cart_item is None:
        return error_response('কার্টে আইটেমটি পাওয়া যায়নি', 404)

    db.session.delete(cart_item)
    db.session.commit()

    return jsonify({'ok': True, 'cart': cart_payload(cart)})


@bp.route('/api/cart', methods=['DELETE'])
def clear_cart():
    cart = get_session_cart()
    if cart is not None:
        CartItem.query.filter_by(cart_id=cart.id).delete()
        db.session.commit()
    return jsonify({'ok': True, 'cart': cart_payload(cart)})
