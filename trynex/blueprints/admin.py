from flask import Blueprint, request, jsonify
from flask_login import current_user
from trynex.extensions import db
from trynex.models import (
    CartItem,
    Category,
    DiscountType,
    Offer,
    Order,
    OrderStatus,
    Product,
    PromoCode,
    SiteSetting,
)
from trynex.middleware import admin_required
from trynex.services import ShopError
from trynex.services.audit_service import log_audit
from trynex.services.order_service import (
    change_order_status,
    normalize_phone,
    parse_status,
)
from trynex.services.pricing_service import parse_amount, to_money
from trynex.services.upload_service import (
    UploadError,
    remove_upload,
    save_image,
)
from trynex.utils import (
    error_response,
    get_json_body,
    get_page_args,
    media_url,
    paginate_query,
    pagination_meta,
    parse_bool,
    serialize_category,
    serialize_offer,
    serialize_order,
    serialize_product,
    serialize_promo_code,
)
from datetime import datetime, timezone
from sqlalchemy import func, or_
import logging
import re

logger = logging.getLogger(__name__)

bp = Blueprint('admin', __name__)

LOW_STOCK_LIMIT = 10
PRODUCT_IMAGE_DIR = 'products'
REVENUE_STATUSES = (OrderStatus.DELIVERED, OrderStatus.COMPLETED)


class FieldError(ValueError):
    pass


def _audit(action, target_type, target_id, payload=None):
    log_audit(
        actor_id=current_user.id,
        actor_role='ADMIN',
        action=action,
        target_type=target_type,
        target_id=target_id,
        payload=payload)


def _text(data, key, label, required=False, max_len=None):
    value = data.get(key)
    value = '' if value is None else str(value).strip()
    if required and not value:
        raise FieldError(f'{label} প্রয়োজন')
    if max_len:
        value = value[:max_len]
    return value or None


def _money(data, key, label, required=False):
    value = data.get(key)
    if value in (None, ''):
        if required:
            raise FieldError(f'{label} প্রয়োজন')
        return None
    try:
        amount = parse_amount(value)
    except ValueError:
        raise FieldError(f'{label} সঠিক নয়')
    if amount < 0:
        raise FieldError(f'{label} ঋণাত্মক হতে পারবে না')
    return amount


def _int(data, key, label, minimum=0):
    value = data.get(key)
    if value in (None, ''):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise FieldError(f'{label} সঠিক নয়')
    if number < minimum:
        raise FieldError(f'{label} {minimum} এর কম হতে পারবে না')
    return number


def _datetime(data, key, label):
    value = data.get(key)
    if value in (None, ''):
        return None
    try:
        dt = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    except ValueError:
        raise FieldError(f'{label} সঠিক তারিখ নয়')
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def slugify(value):
    slug = re.sub(r'[^a-z0-9]+', '-', (value or '').lower()).strip('-')
    return slug[:100]


# ---------------------------------------------------------------- dashboard

@bp.route('/api/admin/stats', methods=['GET'])
@admin_required
def dashboard_stats():
    revenue = db.session.query(
        func.coalesce(func.sum(Order.total), 0)
    ).filter(Order.status.in_(REVENUE_STATUSES)).scalar()

    status_counts = dict(
        db.session.query(Order.status, func.count(Order.id))
        .group_by(Order.status).all())

    stats = {
        'total_products': Product.query.count(),
        'total_orders': Order.query.count(),
        'total_categories': Category.query.count(),
        'pending_orders': status_counts.get(OrderStatus.PENDING, 0),
        'completed_orders': status_counts.get(OrderStatus.COMPLETED, 0),
        'orders_by_status': {
            s.value: status_counts.get(s, 0) for s in OrderStatus},
        'total_revenue': str(to_money(revenue)),
        'total_customers': db.session.query(
            func.count(func.distinct(Order.phone))).scalar(),
        'low_stock_products': Product.query.filter(
            Product.stock > 0, Product.stock < LOW_STOCK_LIMIT).count(),
        'out_of_stock_products': Product.query.filter(
            Product.stock == 0).count(),
    }
    return jsonify(stats)


# ----------------------------------------------------------------- products

def _apply_product_fields(product, data, partial=False):
    if not partial or 'name' in data:
        product.name = _text(data, 'name', 'পণ্যের নাম', True, 200)
    if not partial or 'price' in data:
        product.price = _money(data, 'price', 'মূল্য', required=True)
    if 'stock' in data or not partial:
        stock = _int(data, 'stock', 'স্টক')
        product.stock = stock if stock is not None else 0
    for key, max_len in (
            ('name_bengali', 200),
            ('description', None),
            ('category', 100),
            ('image_url', 500)):
        if key in data:
            setattr(product, key, _text(data, key, key, max_len=max_len))
    for flag in ('is_featured', 'is_latest', 'is_best_selling', 'is_active'):
        if flag in data:
            setattr(product, flag, parse_bool(data.get(flag)))


@bp.route('/api/admin/products', methods=['GET'])
@admin_required
def list_products():
    page, per_page = get_page_args()
    query = Product.query
    q = (request.args.get('q') or '').strip()
    if q:
        query = query.filter(func.lower(Product.name).like(f'%{q.lower()}%'))
    if request.args.get('low_stock'):
        query = query.filter(Product.stock < LOW_STOCK_LIMIT)

    result = paginate_query(
        query.order_by(Product.created_at.desc(), Product.id.desc()),
        page=page, per_page=per_page)
    payload = {'items': [serialize_product(p) for p in result['items']]}
    payload.update(pagination_meta(result))
    return jsonify(payload)


@bp.route('/api/admin/products', methods=['POST'])
@admin_required
def create_product():
    data = get_json_body()
    product = Product(is_active=True)
    try:
        _apply_product_fields(product, data)
    except FieldError as e:
        return error_response(str(e))

    db.session.add(product)
    db.session.commit()
    _audit('PRODUCT_CREATE', 'PRODUCT', product.id,
           {'name': product.name, 'price': str(product.price)})
    return jsonify(serialize_product(product)), 201


@bp.route('/api/admin/products/<int:product_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)

    data = get_json_body()
    try:
        _apply_product_fields(product, data, partial=True)
    except FieldError as e:
        db.session.rollback()
        return error_response(str(e))

    product.updated_at = datetime.utcnow()
    db.session.commit()
    _audit('PRODUCT_UPDATE', 'PRODUCT', product.id,
           {'fields': sorted(data.keys())})
    return jsonify(serialize_product(product))


@bp.route('/api/admin/products/<int:product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)

    remove_upload(product.image_url, PRODUCT_IMAGE_DIR)
    # SQLite does not enforce the cart_items foreign key cascade
    CartItem.query.filter_by(product_id=product.id).delete()
    db.session.delete(product)
    db.session.commit()
    _audit('PRODUCT_DELETE', 'PRODUCT', product_id, {'name': product.name})
    return jsonify({'ok': True})


@bp.route('/api/admin/products/<int:product_id>/image', methods=['POST'])
@admin_required
def upload_product_image(product_id):
    product = db.session.get(Product, product_id)
    if product is None:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)

    try:
        rel_path = save_image(
            request.files.get('image'), PRODUCT_IMAGE_DIR, product.id)
    except UploadError as e:
        return error_response(str(e))

    remove_upload(product.image_url, PRODUCT_IMAGE_DIR)
    product.image_url = rel_path
    product.updated_at = datetime.utcnow()
    db.session.commit()
    _audit('PRODUCT_IMAGE_UPDATE', 'PRODUCT', product.id)

    return jsonify({
        'ok': True,
        'image_url': media_url(rel_path),
        'image_path': rel_path
    })


# --------------------------------------------------------------- categories

@bp.route('/api/admin/categories', methods=['GET'])
@admin_required
def list_categories():
    categories = Category.query.order_by(
        Category.sort_order, Category.name).all()
    return jsonify({'items': [serialize_category(c) for c in categories]})


def _apply_category_fields(category, data, partial=False):
    if not partial or 'name' in data:
        category.name = _text(data, 'name', 'ক্যাটেগরির নাম', True, 100)
    if not partial or 'name_bengali' in data:
        category.name_bengali = _text(
            data, 'name_bengali', 'বাংলা নাম', True, 100)
    if 'slug' in data or not partial:
        slug = slugify(str(data.get('slug') or category.name))
        if not slug:
            raise FieldError('স্লাগ প্রয়োজন')
        category.slug = slug
    for key in ('description', 'image_url'):
        if key in data:
            setattr(category, key, _text(data, key, key))
    if 'sort_order' in data:
        category.sort_order = _int(data, 'sort_order', 'ক্রম') or 0
    if 'is_active' in data:
        category.is_active = parse_bool(data.get('is_active'))


def _category_conflict(category):
    query = Category.query.filter(
        or_(Category.slug == category.slug, Category.name == category.name))
    if category.id is not None:
        query = query.filter(Category.id != category.id)
    return query.first() is not None


@bp.route('/api/admin/categories', methods=['POST'])
@admin_required
def create_category():
    data = get_json_body()
    category = Category(is_active=True, sort_order=0)
    try:
        _apply_category_fields(category, data)
    except FieldError as e:
        return error_response(str(e))

    if _category_conflict(category):
        return error_response('এই নামে ক্যাটেগরি আগে থেকেই আছে', 409)

    db.session.add(category)
    db.session.commit()
    _audit('CATEGORY_CREATE', 'CATEGORY', category.id, {'name': category.name})
    return jsonify(serialize_category(category)), 201


@bp.route('/api/admin/categories/<int:category_id>',
          methods=['PUT', 'PATCH'])
@admin_required
def update_category(category_id):
    category = db.session.get(Category, category_id)
    if category is None:
        return error_response('ক্যাটেগরি পাওয়া যায়নি', 404)

    old_name = category.name
    data = get_json_body()
    try:
        with db.session.no_autoflush:
            _apply_category_fields(category, data, partial=True)
            conflict = _category_conflict(category)
    except FieldError as e:
        db.session.rollback()
        return error_response(str(e))

    if conflict:
        db.session.rollback()
        return error_response('এই নামে ক্যাটেগরি আগে থেকেই আছে', 409)

    # Products reference categories by name
    if category.name != old_name:
        Product.query.filter_by(category=old_name).update(
            {'category': category.name})

    db.session.commit()
    _audit('CATEGORY_UPDATE', 'CATEGORY', category.id,
           {'fields': sorted(data.keys())})
    return jsonify(serialize_category(category))


@bp.route('/api/admin/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def delete_category(category_id):
    category = db.session.get(Category, category_id)
    if category is None:
        return error_response('ক্যাটেগরি পাওয়া যায়নি', 404)

    db.session.delete(category)
    db.session.commit()
    _audit('CATEGORY_DELETE', 'CATEGORY', category_id, {'name': category.name})
    return jsonify({'ok': True})


# ------------------------------------------------------------------- offers

@bp.route('/api/admin/offers', methods=['GET'])
@admin_required
def list_offers():
    offers = Offer.query.order_by(Offer.created_at.desc()).all()
    return jsonify({'items': [serialize_offer(o) for o in offers]})


def _apply_offer_fields(offer, data, partial=False):
    if not partial or 'title' in data:
        offer.title = _text(data, 'title', 'অফারের শিরোনাম', True, 200)
    for key in ('description', 'image_url'):
        if key in data:
            setattr(offer, key, _text(data, key, key))
    if 'discount_percentage' in data:
        pct = _int(data, 'discount_percentage', 'ছাড়ের শতাংশ')
        if pct is not None and pct > 100:
            raise FieldError('ছাড়ের শতাংশ ১০০ এর বেশি হতে পারবে না')
        offer.discount_percentage = pct
    if 'min_order_amount' in data:
        offer.min_order_amount = _money(
            data, 'min_order_amount', 'সর্বনিম্ন অর্ডার')
    if 'starts_at' in data:
        offer.starts_at = _datetime(data, 'starts_at', 'শুরুর তারিখ')
    if 'expiry' in data:
        offer.expiry = _datetime(data, 'expiry', 'মেয়াদ')
    if 'active' in data:
        offer.active = parse_bool(data.get('active'))
    if offer.starts_at and offer.expiry and offer.expiry < offer.starts_at:
        raise FieldError('মেয়াদ শুরুর তারিখের আগে হতে পারবে না')


@bp.route('/api/admin/offers', methods=['POST'])
@admin_required
def create_offer():
    data = get_json_body()
    offer = Offer(active=True)
    try:
        _apply_offer_fields(offer, data)
    except FieldError as e:
        return error_response(str(e))

    db.session.add(offer)
    db.session.commit()
    _audit('OFFER_CREATE', 'OFFER', offer.id, {'title': offer.title})
    return jsonify(serialize_offer(offer)), 201


@bp.route('/api/admin/offers/<int:offer_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_offer(offer_id):
    offer = db.session.get(Offer, offer_id)
    if offer is None:
        return error_response('অফার পাওয়া যায়নি', 404)

    data = get_json_body()
    try:
        _apply_offer_fields(offer, data, partial=True)
    except FieldError as e:
        db.session.rollback()
        return error_response(str(e))

    db.session.commit()
    _audit('OFFER_UPDATE', 'OFFER', offer.id, {'fields': sorted(data.keys())})
    return jsonify(serialize_offer(offer))


@bp.route('/api/admin/offers/<int:offer_id>', methods=['DELETE'])
@admin_required
def delete_offer(offer_id):
    offer = db.session.get(Offer, offer_id)
    if offer is None:
        return error_response('অফার পাওয়া যায়নি', 404)

    db.session.delete(offer)
    db.session.commit()
    _audit('OFFER_DELETE', 'OFFER', offer_id, {'title': offer.title})
    return jsonify({'ok': True})


# -------------------------------------------------------------- promo codes

@bp.route('/api/admin/promo-codes', methods=['GET'])
@admin_required
def list_promo_codes():
    promos = PromoCode.query.order_by(PromoCode.created_at.desc()).all()
    return jsonify({'items': [serialize_promo_code(p) for p in promos]})


def _apply_promo_fields(promo, data, partial=False):
    if not partial or 'code' in data:
        code = _text(data, 'code', 'প্রোমো কোড', True, 50)
        promo.code = code.upper()
    if not partial or 'discount_type' in data:
        try:
            promo.discount_type = DiscountType(
                str(data.get('discount_type') or '').strip().lower())
        except ValueError:
            raise FieldError('ছাড়ের ধরন percentage অথবা fixed হতে হবে')
    if not partial or 'discount_value' in data:
        promo.discount_value = _money(
            data, 'discount_value', 'ছাড়ের পরিমাণ', required=True)
    if promo.discount_type == DiscountType.PERCENTAGE and \
            promo.discount_value is not None and promo.discount_value > 100:
        raise FieldError('ছাড়ের শতাংশ ১০০ এর বেশি হতে পারবে না')
    if 'min_order_amount' in data:
        promo.min_order_amount = _money(
            data, 'min_order_amount', 'সর্বনিম্ন অর্ডার') or 0
    if 'max_discount' in data:
        promo.max_discount = _money(data, 'max_discount', 'সর্বোচ্চ ছাড়')
    if 'usage_limit' in data:
        promo.usage_limit = _int(data, 'usage_limit', 'ব্যবহারের সীমা', 1)
    if 'expires_at' in data:
        promo.expires_at = _datetime(data, 'expires_at', 'মেয়াদ')
    if 'is_active' in data:
        promo.is_active = parse_bool(data.get('is_active'))


def _promo_conflict(promo):
    query = PromoCode.query.filter(PromoCode.code == promo.code)
    if promo.id is not None:
        query = query.filter(PromoCode.id != promo.id)
    return query.first() is not None


@bp.route('/api/admin/promo-codes', methods=['POST'])
@admin_required
def create_promo_code():
    data = get_json_body()
    promo = PromoCode(is_active=True, used_count=0, min_order_amount=0)
    try:
        _apply_promo_fields(promo, data)
    except FieldError as e:
        return error_response(str(e))

    if _promo_conflict(promo):
        return error_response('এই প্রোমো কোড আগে থেকেই আছে', 409)

    db.session.add(promo)
    db.session.commit()
    _audit('PROMO_CODE_CREATE', 'PROMO_CODE', promo.id, {'code': promo.code})
    return jsonify(serialize_promo_code(promo)), 201


@bp.route('/api/admin/promo-codes/<int:promo_id>', methods=['PUT', 'PATCH'])
@admin_required
def update_promo_code(promo_id):
    promo = db.session.get(PromoCode, promo_id)
    if promo is None:
        return error_response('প্রোমো কোড পাওয়া যায়নি', 404)

    data = get_json_body()
    try:
        with db.session.no_autoflush:
            _apply_promo_fields(promo, data, partial=True)
            conflict = _promo_conflict(promo)
    except FieldError as e:
        db.session.rollback()
        return error_response(str(e))

    if conflict:
        db.session.rollback()
        return error_response('এই প্রোমো কোড আগে থেকেই আছে', 409)

    db.session.commit()
    _audit('PROMO_CODE_UPDATE', 'PROMO_CODE', promo.id,
           {'fields': sorted(data.keys())})
    return jsonify(serialize_promo_code(promo))


@bp.route('/api/admin/promo-codes/<int:promo_id>', methods=['DELETE'])
@admin_required
def delete_promo_code(promo_id):
    promo = db.session.get(PromoCode, promo_id)
    if promo is None:
        return error_response('প্রোমো কোড পাওয়া যায়নি', 404)

    db.session.delete(promo)
    db.session.commit()
    _audit('PROMO_CODE_DELETE', 'PROMO_CODE', promo_id, {'code': promo.code})
    return jsonify({'ok': True})


# ------------------------------------------------------------------- orders

@bp.route('/api/admin/orders', methods=['GET'])
@admin_required
def admin_orders():
    page, per_page = get_page_args()
    query = Order.query

    status = (request.args.get('status') or '').strip()
    if status:
        try:
            query = query.filter(Order.status == parse_status(status))
        except ShopError as e:
            return error_response(e.message)

    phone = request.args.get('phone')
    if phone:
        query = query.filter(Order.phone == (normalize_phone(phone) or phone))

    q = (request.args.get('q') or '').strip()
    if q:
        like = f'%{q.lower()}%'
        query = query.filter(or_(
            func.lower(Order.tracking_id).like(like),
            func.lower(Order.customer_name).like(like),
        ))

    result = paginate_query(
        query.order_by(Order.created_at.desc(), Order.id.desc()),
        page=page, per_page=per_page)
    payload = {'items': [serialize_order(o) for o in result['items']]}
    payload.update(pagination_meta(result))
    return jsonify(payload)


@bp.route('/api/admin/orders/<int:order_id>', methods=['GET'])
@admin_required
def admin_order_detail(order_id):
    order = db.session.get(Order, order_id)
    if order is None:
        return error_response('অর্ডার পাওয়া যায়নি', 404)
    return jsonify(serialize_order(order))


@bp.route('/api/admin/orders/<int:order_id>/status',
          methods=['PATCH', 'PUT'])
@admin_required
def update_order_status(order_id):
    order = db.session.get(Order, order_id)
    if order is None:
        return error_response('অর্ডার পাওয়া যায়নি', 404)

    data = get_json_body()
    if not data.get('status'):
        return error_response('স্ট্যাটাস প্রয়োজন')

    old_status = order.status.value
    try:
        changed = change_order_status(order, data['status'])
    except ShopError as e:
        db.session.rollback()
        return error_response(e.message, e.status_code)

    if changed:
        _audit('ORDER_STATUS_UPDATE', 'ORDER', order.id, {
            'tracking_id': order.tracking_id,
            'from': old_status,
            'to': order.status.value,
        })

    return jsonify({
        'ok': True,
        'changed': changed,
        'order': serialize_order(order)
    })


@bp.route('/api/admin/orders/<int:order_id>', methods=['DELETE'])
@admin_required
def delete_order(order_id):
    order = db.session.get(Order, order_id)
    if order is None:
        return error_response('অর্ডার পাওয়া যায়নি', 404)

    tracking_id = order.tracking_id
    remove_upload(order.get_payment_info().get('screenshot_path'), 'payments')
    db.session.delete(order)
    db.session.commit()
    _audit('ORDER_DELETE', 'ORDER', order_id, {'tracking_id': tracking_id})
    return jsonify({'ok': True})


# ----------------------------------------------------------------- settings

@bp.route('/api/admin/settings', methods=['GET'])
@admin_required
def list_settings():
    settings = SiteSetting.query.order_by(SiteSetting.key).all()
    return jsonify({'items': [{
        'key': s.key,
        'value': s.value,
        'description': s.description,
        'updated_at': s.updated_at.isoformat() if s.updated_at else None,
    } for s in settings]})


@bp.route('/api/admin/settings/<key>', methods=['PUT'])
@admin_required
def update_setting(key):
    key = key.strip()
    if not key or len(key) > 100:
        return error_response('সেটিং কী সঠিক নয়')

    data = get_json_body()
    if 'value' not in data:
        return error_response('মান প্রয়োজন')

    setting = SiteSetting.query.filter_by(key=key).first()
    created = setting is None
    if created:
        setting = SiteSetting(key=key)
        db.session.add(setting)

    value = data.get('value')
    setting.value = None if value is None else str(value)
    if 'description' in data:
        setting.description = data.get('description')
    db.session.commit()

    _audit('SETTING_UPDATE', 'SITE_SETTING', setting.id, {'key': key})
    return jsonify({
        'key': setting.key,
        'value': setting.value,
        'description': setting.description,
    }), 201 if created else 200
