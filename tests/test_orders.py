import io
import json

from conftest import checkout_payload
from trynex.extensions import db
from trynex.models import (
    AuditLog,
    DiscountType,
    Order,
    OrderStatus,
    Product,
    PromoCode,
)


def test_checkout_from_session_cart(client, make_product):
    mug = make_product(price='550', stock=5)
    client.post('/api/cart/items', json={
        'product_id': mug.id, 'quantity': 2,
        'customization': {'text': 'Rahim'}})

    resp = client.post('/api/orders', json=checkout_payload())
    assert resp.status_code == 201
    order = resp.get_json()['order']
    assert order['tracking_id'].startswith('TRN')
    assert order['status'] == 'pending'
    assert order['status_label'] == 'অপেক্ষমান'
    assert order['subtotal'] == '1100.00'
    assert order['delivery_fee'] == '80.00'
    assert order['total'] == '1180.00'
    assert order['phone'] == '017*****678'
    assert order['items'][0]['customization'] == {'text': 'Rahim'}

    assert db.session.get(Product, mug.id).stock == 3
    # Cart is emptied after a successful checkout
    assert client.get('/api/cart').get_json()['items'] == []

    saved = Order.query.one()
    assert saved.phone == '01712345678'
    assert saved.get_payment_info()['method'] == 'bkash'
    assert AuditLog.query.filter_by(action='ORDER_CREATE').count() == 1


def test_checkout_with_body_items_uses_catalogue_prices(client, make_product):
    mug = make_product(price='1200', stock=5)
    resp = client.post('/api/orders', json=checkout_payload(
        district='চট্টগ্রাম',
        items=[{'product_id': mug.id, 'quantity': 2, 'price': '1'}],
        total='2',
    ))
    assert resp.status_code == 201
    order = resp.get_json()['order']
    assert order['subtotal'] == '2400.00'
    assert order['delivery_fee'] == '0.00'
    assert order['total'] == '2400.00'


def test_checkout_accepts_double_encoded_items(client, make_product):
    mug = make_product(price='100', stock=5)
    items = json.dumps(json.dumps([{'product_id': mug.id, 'quantity': 1}]))
    resp = client.post('/api/orders', json=checkout_payload(items=items))
    assert resp.status_code == 201
    assert resp.get_json()['order']['items'][0]['quantity'] == 1


def test_checkout_applies_promo_code(client, make_product, make_promo):
    mug = make_product(price='1000', stock=5)
    make_promo(code='SAVE10', discount_value='10')

    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': mug.id, 'quantity': 1}],
        promo_code='save10',
        district='সিলেট',
    ))
    assert resp.status_code == 201
    order = resp.get_json()['order']
    assert order['discount'] == '100.00'
    assert order['delivery_fee'] == '120.00'
    assert order['total'] == '1020.00'
    assert order['promo_code'] == 'SAVE10'
    assert PromoCode.query.filter_by(code='SAVE10').one().used_count == 1


def test_checkout_rejects_invalid_promo(client, make_product, make_promo):
    mug = make_product(price='300', stock=5)
    make_promo(code='BIG', min_order_amount=1000)

    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': mug.id, 'quantity': 1}], promo_code='BIG'))
    assert resp.status_code == 400
    assert Order.query.count() == 0
    assert db.session.get(Product, mug.id).stock == 5


def test_checkout_validation(client, make_product):
    mug = make_product(stock=1)
    items = [{'product_id': mug.id, 'quantity': 1}]

    resp = client.post('/api/orders', json=checkout_payload(
        customer_name='', items=items))
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'নাম প্রয়োজন'

    resp = client.post('/api/orders', json=checkout_payload(
        phone='12345', items=items))
    assert resp.status_code == 400

    resp = client.post('/api/orders', json=checkout_payload(
        payment_info={'method': 'bkash'}, items=items))
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'ট্রানজেকশন আইডি প্রয়োজন'

    # Empty session cart and no items
    resp = client.post('/api/orders', json=checkout_payload())
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'কার্ট খালি'

    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': mug.id, 'quantity': 2}]))
    assert resp.status_code == 400

    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': 999, 'quantity': 1}]))
    assert resp.status_code == 404

    assert Order.query.count() == 0


def test_stock_counted_across_duplicate_lines(client, make_product):
    mug = make_product(stock=3)
    resp = client.post('/api/orders', json=checkout_payload(items=[
        {'product_id': mug.id, 'quantity': 2},
        {'product_id': mug.id, 'quantity': 2,
         'customization': {'text': 'x'}},
    ]))
    assert resp.status_code == 400
    assert db.session.get(Product, mug.id).stock == 3


def _place_order(client, product):
    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': product.id, 'quantity': 1}]))
    assert resp.status_code == 201
    return resp.get_json()['order']['tracking_id']


def test_track_order_case_insensitive(client, make_product):
    tracking_id = _place_order(client, make_product())

    resp = client.get(f'/api/orders/track/{tracking_id.lower()}')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['tracking_id'] == tracking_id
    assert 'address' not in data
    assert data['payment_info'] == {'method': 'bkash', 'has_screenshot': False}

    assert client.get('/api/orders/track/TRN000').status_code == 404


def test_lookup_by_phone(client, make_product):
    mug = make_product()
    _place_order(client, mug)
    _place_order(client, mug)

    resp = client.get('/api/orders/lookup',
                      query_string={'phone': '+8801712345678'})
    assert resp.status_code == 200
    assert resp.get_json()['total'] == 2

    assert client.get('/api/orders/lookup',
                      query_string={'phone': 'abc'}).status_code == 400


def test_payment_screenshot_upload(client, make_product):
    tracking_id = _place_order(client, make_product())

    resp = client.post(
        f'/api/orders/{tracking_id}/payment-screenshot',
        data={'screenshot': (io.BytesIO(b'fake-png'), 'pay.png')},
        content_type='multipart/form-data')
    assert resp.status_code == 200
    assert resp.get_json()['screenshot_url'].startswith(
        '/static/uploads/payments/')

    order = Order.query.filter_by(tracking_id=tracking_id).one()
    assert order.get_payment_info()['screenshot_path'].endswith('.png')
    assert order.status == OrderStatus.PENDING

    tracked = client.get(f'/api/orders/track/{tracking_id}').get_json()
    assert tracked['payment_info']['has_screenshot'] is True


def test_payment_screenshot_rejects_bad_files(client, make_product):
    tracking_id = _place_order(client, make_product())
    url = f'/api/orders/{tracking_id}/payment-screenshot'

    resp = client.post(
        url,
        data={'screenshot': (io.BytesIO(b'x'), 'pay.exe')},
        content_type='multipart/form-data')
    assert resp.status_code == 400

    resp = client.post(url, data={}, content_type='multipart/form-data')
    assert resp.status_code == 400

    resp = client.post(
        '/api/orders/TRN000/payment-screenshot',
        data={'screenshot': (io.BytesIO(b'x'), 'pay.png')},
        content_type='multipart/form-data')
    assert resp.status_code == 404


def test_checkout_with_numeric_promo_code(client, make_product, make_promo):
    mug = make_product(price='1000', stock=5)
    make_promo(code='2024', discount_type=DiscountType.FIXED,
               discount_value='150')

    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': mug.id, 'quantity': 1}], promo_code=2024))
    assert resp.status_code == 201
    assert resp.get_json()['order']['discount'] == '150.00'


def test_checkout_rejects_huge_quantity(client, make_product):
    mug = make_product(stock=5)
    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': mug.id, 'quantity': 10 ** 30}]))
    assert resp.status_code == 400
    assert db.session.get(Product, mug.id).stock == 5


def test_promo_usage_limit_enforced_at_checkout(client, make_product,
                                                make_promo):
    mug = make_product(price='1000', stock=5)
    make_promo(code='ONCE', usage_limit=1)
    payload = checkout_payload(
        items=[{'product_id': mug.id, 'quantity': 1}], promo_code='once')

    assert client.post('/api/orders', json=payload).status_code == 201
    resp = client.post('/api/orders', json=payload)
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'প্রোমো কোডের ব্যবহারের সীমা শেষ'
    assert PromoCode.query.filter_by(code='ONCE').one().used_count == 1
