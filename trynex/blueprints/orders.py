from flask import Blueprint, request, jsonify
from trynex.extensions import db
from trynex.models import CartItem, Order
from trynex.blueprints.cart import cart_lines_for_checkout, get_session_cart
from trynex.services import ShopError
from trynex.services.audit_service import log_audit
from trynex.services.order_service import create_order, normalize_phone
from trynex.services.upload_service import (
    UploadError,
    remove_upload,
    save_image,
)
from trynex.utils import (
    error_response,
    get_json_body,
    media_url,
    serialize_order,
)
from sqlalchemy import func
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('orders', __name__)

SCREENSHOT_DIR = 'payments'


def _find_by_tracking_id(tracking_id):
    tracking_id = (tracking_id or '').strip().upper()
    if not tracking_id:
        return None
    return Order.query.filter(
        func.upper(Order.tracking_id) == tracking_id).first()


@bp.route('/api/orders', methods=['POST'])
def checkout():
    data = get_json_body()

    cart = get_session_cart()
    use_cart = not data.get('items')
    cart_items = cart_lines_for_checkout(cart) if use_cart else None

    try:
        order = create_order(data, cart_items=cart_items)
    except ShopError as e:
        db.session.rollback()
        logger.info("Checkout rejected: %s", e.message)
        return error_response(e.message, e.status_code)

    # Clear cart
    if use_cart and cart is not None:
        CartItem.query.filter_by(cart_id=cart.id).delete()
        db.session.commit()

    payment = order.get_payment_info()
    log_audit(
        actor_role='CUSTOMER',
        action='ORDER_CREATE',
        target_type='ORDER',
        target_id=order.id,
        payload={
            'tracking_id': order.tracking_id,
            'total': str(order.total),
            'payment_method': payment.get('method'),
            'promo_code': order.promo_code,
        })

    return jsonify({
        'ok': True,
        'message': 'অর্ডার সফলভাবে সম্পন্ন হয়েছে',
        'order': serialize_order(order, public=True)
    }), 201


@bp.route('/api/orders/track/<tracking_id>', methods=['GET'])
def track_order(tracking_id):
    order = _find_by_tracking_id(tracking_id)
    if order is None:
        return error_response('অর্ডার পাওয়া যায়নি', 404)
    return jsonify(serialize_order(order, public=True))


@bp.route('/api/orders/lookup', methods=['GET'])
def lookup_orders():
    phone = normalize_phone(request.args.get('phone'))
    if not phone:
        return error_response('সঠিক মোবাইল নম্বর দিন (যেমন 01XXXXXXXXX)')

    orders = Order.query.filter_by(phone=phone).order_by(
        Order.created_at.desc()).limit(50).all()
    return jsonify({
        'items': [serialize_order(o, public=True) for o in orders],
        'total': len(orders),
    })


@bp.route('/api/orders/<tracking_id>/payment-screenshot', methods=['POST'])
def upload_payment_screenshot(tracking_id):
    order = _find_by_tracking_id(tracking_id)
    if order is None:
        return error_response('অর্ডার পাওয়া যায়নি', 404)

    try:
        rel_path = save_image(
            request.files.get('screenshot'),
            SCREENSHOT_DIR,
            order.tracking_id)
    except UploadError as e:
        return error_response(str(e))

    payment = order.get_payment_info()
    remove_upload(payment.get('screenshot_path'), SCREENSHOT_DIR)
    payment['screenshot_path'] = rel_path
    order.set_payment_info(payment)
    db.session.commit()

    log_audit(
        actor_role='CUSTOMER',
        action='PAYMENT_SCREENSHOT_UPLOAD',
        target_type='ORDER',
        target_id=order.id,
        payload={'tracking_id': order.tracking_id})

    return jsonify({
        'ok': True,
        'message': 'পেমেন্টের স্ক্রিনশট আপলোড হয়েছে',
        'screenshot_url': media_url(rel_path)
    })
