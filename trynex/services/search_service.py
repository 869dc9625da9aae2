from trynex.models import Category, Product
from trynex.services.pricing_service import parse_amount
from trynex.utils import paginate_query
from sqlalchemy import func, or_
import re
import logging

logger = logging.getLogger(__name__)

SORT_OPTIONS = ('newest', 'price_asc', 'price_desc', 'name')
TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _sanitize_query(query):
    if not query:
        return None
    q = str(query).replace('\x00', '').strip()
    if not q:
        return None
    q = re.sub(r'(--|/\*|\*/|;|["\'`\\#%_])', ' ', q)
    q = re.sub(r'\s+', ' ', q).strip()
    return q[:80] if len(q) > 80 else q


def is_truthy(value):
    return str(value or '').strip().lower() in TRUE_VALUES


def _category_names(category):
    """Resolve a category filter given as a name, Bengali name or slug."""
    if not category:
        return []
    c = str(category).strip()
    if not c or c.lower() == 'all':
        return []
    match = Category.query.filter(
        or_(
            Category.slug == c.lower(),
            func.lower(Category.name) == c.lower(),
            Category.name_bengali == c,
        )
    ).first()
    names = {c.lower()}
    if match:
        names.add(match.name.lower())
        names.add(match.slug.lower())
    return sorted(names)


def _parse_price(value):
    if value in (None, ''):
        return None
    try:
        return parse_amount(value)
    except ValueError:
        return None


def search_products(
        query=None,
        category=None,
        featured=False,
        latest=False,
        best_selling=False,
        in_stock=False,
        min_price=None,
        max_price=None,
        sort_by='newest',
        page=1,
        per_page=20):
    base_query = Product.query.filter_by(is_active=True)

    names = _category_names(category)
    if names:
        base_query = base_query.filter(
            func.lower(Product.category).in_(names))

    query_safe = _sanitize_query(query)
    if query_safe:
        like = f'%{query_safe.lower()}%'
        base_query = base_query.filter(
            or_(
                func.lower(Product.name).like(like),
                Product.name_bengali.like(f'%{query_safe}%'),
                func.lower(Product.description).like(like),
            )
        )

    if featured:
        base_query = base_query.filter(Product.is_featured.is_(True))
    if latest:
        base_query = base_query.filter(Product.is_latest.is_(True))
    if best_selling:
        base_query = base_query.filter(Product.is_best_selling.is_(True))
    if in_stock:
        base_query = base_query.filter(Product.stock > 0)

    low = _parse_price(min_price)
    if low is not None:
        base_query = base_query.filter(Product.price >= low)
    high = _parse_price(max_price)
    if high is not None:
        base_query = base_query.filter(Product.price <= high)

    if sort_by == 'price_asc':
        base_query = base_query.order_by(Product.price.asc(), Product.id)
    elif sort_by == 'price_desc':
        base_query = base_query.order_by(Product.price.desc(), Product.id)
    elif sort_by == 'name':
        base_query = base_query.order_by(Product.name.asc(), Product.id)
    else:
        base_query = base_query.order_by(
            Product.created_at.desc(), Product.id.desc())

    return paginate_query(base_query, page=page, per_page=per_page)


def related_products(product, limit=4):
    query = Product.query.filter(
        Product.is_active.is_(True),
        Product.id != product.id,
    )
    if product.category:
        query = query.filter(
            func.lower(Product.category) == product.category.lower())
    return query.order_by(Product.is_best_selling.desc(),
                          Product.created_at.desc()).limit(limit).all()
