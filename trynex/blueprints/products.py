from flask import Blueprint, request, jsonify
from trynex.extensions import db
from trynex.models import Category, Product
from trynex.services.search_service import (
    SORT_OPTIONS,
    is_truthy,
    related_products,
    search_products,
)
from trynex.utils import (
    error_response,
    get_page_args,
    pagination_meta,
    serialize_category,
    serialize_product,
)
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('products', __name__)


@bp.route('/api/products', methods=['GET'])
def product_list():
    sort_by = request.args.get('sort', 'newest')
    if sort_by not in SORT_OPTIONS:
        sort_by = 'newest'
    page, per_page = get_page_args()

    result = search_products(
        query=request.args.get('q', '').strip() or None,
        category=request.args.get('category', '').strip() or None,
        featured=is_truthy(request.args.get('featured')),
        latest=is_truthy(request.args.get('latest')),
        best_selling=is_truthy(request.args.get('best_selling')),
        in_stock=is_truthy(request.args.get('in_stock')),
        min_price=request.args.get('min_price'),
        max_price=request.args.get('max_price'),
        sort_by=sort_by,
        page=page,
        per_page=per_page
    )

    payload = {'items': [serialize_product(p) for p in result['items']]}
    payload.update(pagination_meta(result))
    return jsonify(payload)


def _get_active_product(product_id):
    product = db.session.get(Product, product_id)
    if product is None or not product.is_active:
        return None
    return product


@bp.route('/api/products/<int:product_id>', methods=['GET'])
def product_detail(product_id):
    product = _get_active_product(product_id)
    if product is None:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)
    return jsonify(serialize_product(product))


@bp.route('/api/products/<int:product_id>/related', methods=['GET'])
def product_related(product_id):
    product = _get_active_product(product_id)
    if product is None:
        return error_response('পণ্যটি পাওয়া যায়নি', 404)
    return jsonify({
        'items': [serialize_product(p) for p in related_products(product)]
    })


@bp.route('/api/categories', methods=['GET'])
def category_list():
    categories = Category.query.filter_by(is_active=True).order_by(
        Category.sort_order, Category.name).all()
    return jsonify({'items': [serialize_category(c) for c in categories]})
