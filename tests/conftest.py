from decimal import Decimal

import pytest

from trynex import create_app
from trynex.config import TestingConfig
from trynex.extensions import db
from trynex.models import (
    Admin,
    Category,
    DiscountType,
    Product,
    PromoCode,
)

ADMIN_EMAIL = 'admin@trynex.com'
ADMIN_PASSWORD = 'admin123'


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig)
    app.static_folder = str(tmp_path / 'static')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    admin = Admin(email=ADMIN_EMAIL)
    admin.set_password(ADMIN_PASSWORD)
    db.session.add(admin)
    db.session.commit()
    return admin


@pytest.fixture
def admin_headers(client, admin):
    resp = client.post('/api/admin/login', json={
        'email': ADMIN_EMAIL,
        'password': ADMIN_PASSWORD,
    })
    assert resp.status_code == 200
    return {'Authorization': f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def make_product(app):
    def _make(name='Ceramic Mug', price='550', stock=10, **kwargs):
        kwargs.setdefault('category', 'Mugs')
        product = Product(
            name=name,
            price=Decimal(price),
            stock=stock,
            **kwargs
        )
        db.session.add(product)
        db.session.commit()
        return product
    return _make


@pytest.fixture
def category(app):
    category = Category(
        name='Mugs', name_bengali='মগ', slug='mugs', sort_order=1)
    db.session.add(category)
    db.session.commit()
    return category


@pytest.fixture
def make_promo(app):
    def _make(code='SAVE10', discount_type=DiscountType.PERCENTAGE,
              discount_value='10', **kwargs):
        kwargs.setdefault('min_order_amount', Decimal('0'))
        promo = PromoCode(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            used_count=kwargs.pop('used_count', 0),
            is_active=kwargs.pop('is_active', True),
            **kwargs
        )
        db.session.add(promo)
        db.session.commit()
        return promo
    return _make


def checkout_payload(**overrides):
    data = {
        'customer_name': 'রহিম উদ্দিন',
        'phone': '01712345678',
        'district': 'ঢাকা',
        'thana': 'ধানমন্ডি',
        'address': 'House 12, Road 5',
        'payment_info': {
            'method': 'bkash',
            'transaction_id': '8N7A6B5C4D',
        },
    }
    data.update(overrides)
    return data
