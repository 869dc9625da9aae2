from flask import Blueprint, current_app, jsonify, request
from trynex.extensions import db
from trynex.locations import DISTRICTS, THANAS_BY_DISTRICT
from trynex.models import (
    AnalyticsEvent,
    AnalyticsEventType,
    Offer,
    SiteSetting,
)
from trynex.services.order_service import find_promo_code
from trynex.services.pricing_service import (
    calculate_delivery_fee,
    calculate_promo_discount,
    free_delivery_threshold,
    parse_amount,
)
from trynex.utils import error_response, get_json_body, serialize_offer
from datetime import datetime
from sqlalchemy import or_
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('public', __name__)


@bp.route('/api/health', methods=['GET'])
def health():
    return jsonify({
        'status': 'ok',
        'timestamp': datetime.utcnow().isoformat(),
    })


@bp.route('/api/settings', methods=['GET'])
def site_settings():
    settings = {s.key: s.value for s in SiteSetting.query.all()}
    # Payment wallets come from config unless overridden in the DB
    settings.setdefault('bkash_number', current_app.config['BKASH_NUMBER'])
    settings.setdefault('nagad_number', current_app.config['NAGAD_NUMBER'])
    settings.setdefault('rocket_number', current_app.config['ROCKET_NUMBER'])
    settings.setdefault(
        'free_delivery_threshold', str(free_delivery_threshold()))
    return jsonify(settings)


@bp.route('/api/offers', methods=['GET'])
def active_offers():
    now = datetime.utcnow()
    offers = Offer.query.filter(
        Offer.active.is_(True),
        or_(Offer.expiry.is_(None), Offer.expiry >= now),
        or_(Offer.starts_at.is_(None), Offer.starts_at <= now),
    ).order_by(Offer.created_at.desc()).all()
    return jsonify({'items': [serialize_offer(o) for o in offers]})


@bp.route('/api/delivery-fee', methods=['GET'])
def delivery_fee():
    district = request.args.get('district', '')
    try:
        subtotal = parse_amount(request.args.get('subtotal', '0'))
    except ValueError:
        return error_response('অবৈধ পরিমাণ')

    fee = calculate_delivery_fee(district, subtotal)
    return jsonify({
        'district': district,
        'subtotal': str(subtotal),
        'delivery_fee': str(fee),
        'free_delivery_threshold': str(free_delivery_threshold()),
    })


@bp.route('/api/locations', methods=['GET'])
def locations():
    return jsonify({
        'districts': DISTRICTS,
        'thanas': THANAS_BY_DISTRICT,
    })


@bp.route('/api/promo-codes/validate', methods=['POST'])
def validate_promo_code():
    data = get_json_body()
    code = str(data.get('code') or '').strip()
    if not code:
        return error_response('প্রোমো কোড দিন')

    try:
        order_amount = parse_amount(data.get('order_amount', 0))
    except ValueError:
        return error_response('অবৈধ পরিমাণ')

    promo = find_promo_code(code)
    discount, message = calculate_promo_discount(promo, order_amount)
    if message:
        return jsonify({'valid': False, 'discount': '0.00', 'message': message})

    return jsonify({
        'valid': True,
        'code': promo.code,
        'discount': str(discount),
        'message': 'প্রোমো কোড প্রয়োগ করা হয়েছে',
    })


@bp.route('/api/analytics', methods=['POST'])
def track_event():
    data = get_json_body()
    try:
        event_type = AnalyticsEventType(data.get('event_type'))
    except ValueError:
        return error_response('অবৈধ ইভেন্ট')

    product_id = data.get('product_id')
    event = AnalyticsEvent(
        event_type=event_type,
        page_url=str(data.get('page_url') or '')[:500] or None,
        product_id=product_id if isinstance(product_id, int) else None,
        session_id=str(data.get('session_id') or '')[:100] or None,
        user_agent=(request.headers.get('User-Agent') or '')[:500] or None,
        ip_address=request.remote_addr,
    )
    metadata = data.get('metadata')
    if isinstance(metadata, dict):
        event.set_metadata(metadata)

    db.session.add(event)
    db.session.commit()
    return jsonify({'ok': True, 'id': event.id}), 201
