from flask import current_app, jsonify, request, url_for
import logging

logger = logging.getLogger(__name__)


def error_response(message, status=400, **extra):
    body = {'error': message}
    body.update(extra)
    return jsonify(body), status


def get_json_body():
    """Request JSON as a dict; malformed or non-object bodies become {}."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def get_page_args():
    page = max(1, request.args.get('page', 1, type=int) or 1)
    per_page = request.args.get(
        'per_page', current_app.config['ITEMS_PER_PAGE'], type=int)
    per_page = max(1, min(
        per_page or 1, current_app.config['MAX_ITEMS_PER_PAGE']))
    return page, per_page


def paginate_query(query, page=1, per_page=20):
    pagination = query.paginate(
        page=page,
        per_page=per_page,
        error_out=False
    )
    return {
        'items': pagination.items,
        'page': pagination.page,
        'pages': pagination.pages,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'has_next': pagination.has_next,
        'has_prev': pagination.has_prev
    }


def pagination_meta(result):
    return {k: v for k, v in result.items() if k != 'items'}


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _iso(dt):
    return dt.isoformat() if dt else None


def media_url(path):
    """Absolute URLs pass through; paths under static/ get a static URL."""
    if not path:
        return None
    if path.startswith(('http://', 'https://', '/')):
        return path
    return url_for('static', filename=path)


def serialize_product(p):
    return {
        'id': p.id,
        'name': p.name,
        'name_bengali': p.name_bengali,
        'description': p.description,
        'price': str(p.price),
        'stock': p.stock,
        'in_stock': p.stock > 0,
        'category': p.category,
        'image_url': media_url(p.image_url),
        'is_featured': p.is_featured,
        'is_latest': p.is_latest,
        'is_best_selling': p.is_best_selling,
        'is_active': p.is_active,
        'created_at': _iso(p.created_at),
        'updated_at': _iso(p.updated_at),
    }


def serialize_category(c):
    return {
        'id': c.id,
        'name': c.name,
        'name_bengali': c.name_bengali,
        'slug': c.slug,
        'description': c.description,
        'image_url': media_url(c.image_url),
        'is_active': c.is_active,
        'sort_order': c.sort_order,
    }


def serialize_offer(o):
    return {
        'id': o.id,
        'title': o.title,
        'description': o.description,
        'image_url': media_url(o.image_url),
        'discount_percentage': o.discount_percentage,
        'min_order_amount': (
            str(o.min_order_amount)
            if o.min_order_amount is not None else None),
        'starts_at': _iso(o.starts_at),
        'expiry': _iso(o.expiry),
        'active': o.active,
        'created_at': _iso(o.created_at),
    }


def serialize_promo_code(pc):
    return {
        'id': pc.id,
        'code': pc.code,
        'discount_type': pc.discount_type.value,
        'discount_value': str(pc.discount_value),
        'min_order_amount': str(pc.min_order_amount or 0),
        'max_discount': (
            str(pc.max_discount) if pc.max_discount is not None else None),
        'usage_limit': pc.usage_limit,
        'used_count': pc.used_count,
        'expires_at': _iso(pc.expires_at),
        'is_active': pc.is_active,
        'created_at': _iso(pc.created_at),
    }


def serialize_order(order, public=False):
    from trynex.services.order_service import mask_phone, status_label

    payment = order.get_payment_info()
    screenshot = payment.pop('screenshot_path', None)
    payment['has_screenshot'] = bool(screenshot)

    data = {
        'tracking_id': order.tracking_id,
        'customer_name': order.customer_name,
        'district': order.district,
        'thana': order.thana,
        'status': order.status.value,
        'status_label': status_label(order.status),
        'items': order.get_items(),
        'subtotal': str(order.subtotal),
        'delivery_fee': str(order.delivery_fee),
        'discount': str(order.discount),
        'total': str(order.total),
        'promo_code': order.promo_code,
        'created_at': _iso(order.created_at),
        'updated_at': _iso(order.updated_at),
    }

    if public:
        data['phone'] = mask_phone(order.phone)
        data['payment_info'] = {
            'method': payment.get('method'),
            'has_screenshot': payment['has_screenshot'],
        }
        return data

    if screenshot:
        payment['screenshot_url'] = media_url(screenshot)
    data.update({
        'id': order.id,
        'phone': order.phone,
        'email': order.email,
        'address': order.address,
        'payment_info': payment,
        'custom_instructions': order.custom_instructions,
    })
    return data
