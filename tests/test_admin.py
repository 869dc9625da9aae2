import io
from datetime import datetime, timedelta

from conftest import checkout_payload
from trynex.extensions import db
from trynex.models import AuditLog, CartItem, Order, Product, SiteSetting


def test_login_and_token(client, admin):
    resp = client.post('/api/admin/login', json={
        'email': 'ADMIN@trynex.com', 'password': 'admin123'})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['token_type'] == 'Bearer'
    assert data['admin']['email'] == 'admin@trynex.com'

    me = client.get('/api/admin/me', headers={
        'Authorization': f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.get_json()['email'] == 'admin@trynex.com'


def test_login_failures(client, admin):
    resp = client.post('/api/admin/login', json={
        'email': 'admin@trynex.com', 'password': 'wrong'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'অবৈধ ইমেইল বা পাসওয়ার্ড'

    assert client.post('/api/admin/login', json={}).status_code == 400
    assert AuditLog.query.filter_by(
        action='ADMIN_LOGIN_FAILED').count() == 1


def test_admin_routes_require_token(client, admin):
    resp = client.get('/api/admin/stats')
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'অ্যাক্সেস টোকেন প্রয়োজন'

    resp = client.get('/api/admin/stats', headers={
        'Authorization': 'Bearer not-a-token'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'অবৈধ টোকেন'


def test_expired_token_rejected(app, client, admin):
    app.config['ADMIN_TOKEN_EXPIRE_HOURS'] = -1
    token = client.post('/api/admin/login', json={
        'email': 'admin@trynex.com', 'password': 'admin123'
    }).get_json()['token']
    resp = client.get('/api/admin/stats', headers={
        'Authorization': f'Bearer {token}'})
    assert resp.status_code == 401


def test_product_crud(client, admin_headers):
    resp = client.post('/api/admin/products', headers=admin_headers, json={
        'name': 'Photo Frame',
        'price': '899.5',
        'stock': 12,
        'category': 'Home Decor',
        'is_featured': True,
    })
    assert resp.status_code == 201
    product = resp.get_json()
    assert product['price'] == '899.50'
    assert product['is_featured'] is True
    assert product['is_latest'] is False

    resp = client.patch(
        f"/api/admin/products/{product['id']}",
        headers=admin_headers,
        json={'stock': 0, 'is_active': False})
    assert resp.status_code == 200
    assert resp.get_json()['stock'] == 0
    assert resp.get_json()['name'] == 'Photo Frame'

    # Hidden from the storefront, still visible to admins
    assert client.get(f"/api/products/{product['id']}").status_code == 404
    listing = client.get('/api/admin/products', headers=admin_headers)
    assert listing.get_json()['total'] == 1

    resp = client.delete(
        f"/api/admin/products/{product['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert Product.query.count() == 0
    assert AuditLog.query.filter_by(action='PRODUCT_DELETE').count() == 1


def test_product_validation(client, admin_headers, make_product):
    assert client.post('/api/admin/products', headers=admin_headers, json={
        'price': '100'}).status_code == 400
    assert client.post('/api/admin/products', headers=admin_headers, json={
        'name': 'X', 'price': 'abc'}).status_code == 400
    assert client.post('/api/admin/products', headers=admin_headers, json={
        'name': 'X', 'price': '10', 'stock': -1}).status_code == 400
    assert client.put('/api/admin/products/999', headers=admin_headers,
                      json={'name': 'Y'}).status_code == 404

    mug = make_product()
    resp = client.put(f'/api/admin/products/{mug.id}', headers=admin_headers,
                      json={'price': '-5'})
    assert resp.status_code == 400


def test_product_image_upload(client, admin_headers, make_product):
    mug = make_product()
    resp = client.post(
        f'/api/admin/products/{mug.id}/image',
        headers=admin_headers,
        data={'image': (io.BytesIO(b'img'), 'mug.webp')},
        content_type='multipart/form-data')
    assert resp.status_code == 200
    assert resp.get_json()['image_path'].startswith('uploads/products/')
    assert db.session.get(Product, mug.id).image_url.endswith('.webp')


def test_category_crud(client, admin_headers, make_product):
    resp = client.post('/api/admin/categories', headers=admin_headers, json={
        'name': 'Gift for Him', 'name_bengali': 'তার জন্য উপহার'})
    assert resp.status_code == 201
    category = resp.get_json()
    assert category['slug'] == 'gift-for-him'

    dup = client.post('/api/admin/categories', headers=admin_headers, json={
        'name': 'Gift for Him', 'name_bengali': 'x'})
    assert dup.status_code == 409

    assert client.post('/api/admin/categories', headers=admin_headers, json={
        'name': 'Mugs'}).status_code == 400

    make_product(category='Gift for Him')
    resp = client.patch(
        f"/api/admin/categories/{category['id']}",
        headers=admin_headers,
        json={'name': 'Gifts for Him', 'sort_order': 3})
    assert resp.status_code == 200
    assert resp.get_json()['sort_order'] == 3
    # Slug stays unless explicitly changed
    assert resp.get_json()['slug'] == 'gift-for-him'
    assert Product.query.one().category == 'Gifts for Him'

    resp = client.delete(
        f"/api/admin/categories/{category['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert client.get('/api/admin/categories',
                      headers=admin_headers).get_json()['items'] == []


def test_offer_crud(client, admin_headers):
    resp = client.post('/api/admin/offers', headers=admin_headers, json={
        'title': 'ঈদ অফার',
        'discount_percentage': 15,
        'expiry': '2030-01-01T00:00:00Z',
    })
    assert resp.status_code == 201
    offer = resp.get_json()
    assert offer['expiry'] == '2030-01-01T00:00:00'

    assert client.post('/api/admin/offers', headers=admin_headers, json={
        'title': 'Bad', 'discount_percentage': 150}).status_code == 400
    assert client.post('/api/admin/offers', headers=admin_headers, json={
        'title': 'Bad', 'expiry': 'tomorrow'}).status_code == 400

    resp = client.put(f"/api/admin/offers/{offer['id']}",
                      headers=admin_headers, json={'active': False})
    assert resp.get_json()['active'] is False
    assert client.get('/api/offers').get_json()['items'] == []

    assert client.delete(f"/api/admin/offers/{offer['id']}",
                         headers=admin_headers).status_code == 200


def test_promo_code_crud(client, admin_headers):
    resp = client.post('/api/admin/promo-codes', headers=admin_headers, json={
        'code': 'eid50',
        'discount_type': 'fixed',
        'discount_value': '50',
        'usage_limit': 100,
    })
    assert resp.status_code == 201
    promo = resp.get_json()
    assert promo['code'] == 'EID50'
    assert promo['used_count'] == 0

    assert client.post('/api/admin/promo-codes', headers=admin_headers, json={
        'code': 'EID50', 'discount_type': 'fixed',
        'discount_value': '10'}).status_code == 409
    assert client.post('/api/admin/promo-codes', headers=admin_headers, json={
        'code': 'P', 'discount_type': 'percentage',
        'discount_value': '120'}).status_code == 400
    assert client.post('/api/admin/promo-codes', headers=admin_headers, json={
        'code': 'Q', 'discount_type': 'bogus',
        'discount_value': '10'}).status_code == 400

    resp = client.patch(f"/api/admin/promo-codes/{promo['id']}",
                        headers=admin_headers, json={'is_active': False})
    assert resp.get_json()['is_active'] is False

    assert client.delete(f"/api/admin/promo-codes/{promo['id']}",
                         headers=admin_headers).status_code == 200


def _order(client, product, **overrides):
    resp = client.post('/api/orders', json=checkout_payload(
        items=[{'product_id': product.id, 'quantity': 2}], **overrides))
    assert resp.status_code == 201
    return Order.query.filter_by(
        tracking_id=resp.get_json()['order']['tracking_id']).one()


def test_order_status_flow(client, admin_headers, make_product):
    mug = make_product(price='500', stock=5)
    order = _order(client, mug)
    url = f'/api/admin/orders/{order.id}/status'

    resp = client.patch(url, headers=admin_headers,
                        json={'status': 'processing'})
    assert resp.status_code == 200
    assert resp.get_json()['changed'] is True
    assert resp.get_json()['order']['status'] == 'processing'

    resp = client.patch(url, headers=admin_headers,
                        json={'status': 'processing'})
    assert resp.get_json()['changed'] is False

    for status in ('shipped', 'delivered', 'completed'):
        resp = client.patch(url, headers=admin_headers,
                            json={'status': status})
        assert resp.status_code == 200

    resp = client.patch(url, headers=admin_headers,
                        json={'status': 'pending'})
    assert resp.status_code == 409

    assert client.patch(url, headers=admin_headers,
                        json={'status': 'lost'}).status_code == 400
    assert client.patch(url, headers=admin_headers,
                        json={}).status_code == 400
    assert AuditLog.query.filter_by(
        action='ORDER_STATUS_UPDATE').count() == 4

    tracked = client.get(f'/api/orders/track/{order.tracking_id}')
    assert tracked.get_json()['status'] == 'completed'


def test_cancel_restores_stock(client, admin_headers, make_product):
    mug = make_product(stock=5)
    order = _order(client, mug)
    assert db.session.get(Product, mug.id).stock == 3

    resp = client.patch(f'/api/admin/orders/{order.id}/status',
                        headers=admin_headers, json={'status': 'cancelled'})
    assert resp.status_code == 200
    assert db.session.get(Product, mug.id).stock == 5


def test_shipped_order_cannot_be_cancelled(client, admin_headers,
                                           make_product):
    mug = make_product(stock=5)
    order = _order(client, mug)
    url = f'/api/admin/orders/{order.id}/status'
    client.patch(url, headers=admin_headers, json={'status': 'shipped'})

    resp = client.patch(url, headers=admin_headers,
                        json={'status': 'cancelled'})
    assert resp.status_code == 409
    assert db.session.get(Product, mug.id).stock == 3


def test_order_listing_and_detail(client, admin_headers, make_product):
    mug = make_product(stock=10)
    first = _order(client, mug)
    _order(client, mug, phone='01812345678', customer_name='Karim')

    data = client.get('/api/admin/orders', headers=admin_headers).get_json()
    assert data['total'] == 2

    data = client.get('/api/admin/orders', headers=admin_headers,
                      query_string={'phone': '01812345678'}).get_json()
    assert [o['customer_name'] for o in data['items']] == ['Karim']

    data = client.get('/api/admin/orders', headers=admin_headers,
                      query_string={'status': 'pending'}).get_json()
    assert data['total'] == 2
    assert client.get('/api/admin/orders', headers=admin_headers,
                      query_string={'status': 'nope'}).status_code == 400

    detail = client.get(f'/api/admin/orders/{first.id}',
                        headers=admin_headers).get_json()
    assert detail['phone'] == '01712345678'
    assert detail['address'] == 'House 12, Road 5'
    assert detail['payment_info']['transaction_id'] == '8N7A6B5C4D'

    assert client.delete(f'/api/admin/orders/{first.id}',
                         headers=admin_headers).status_code == 200
    assert client.get(f'/api/admin/orders/{first.id}',
                      headers=admin_headers).status_code == 404


def test_stats(client, admin_headers, make_product, category):
    mug = make_product(price='1000', stock=12)
    make_product(name='Bottle', stock=3)
    make_product(name='Frame', stock=0)

    delivered = _order(client, mug)
    _order(client, mug, phone='01812345678')
    url = f'/api/admin/orders/{delivered.id}/status'
    client.patch(url, headers=admin_headers, json={'status': 'delivered'})

    stats = client.get('/api/admin/stats', headers=admin_headers).get_json()
    assert stats['total_products'] == 3
    assert stats['total_orders'] == 2
    assert stats['total_categories'] == 1
    assert stats['pending_orders'] == 1
    assert stats['orders_by_status']['delivered'] == 1
    assert stats['total_revenue'] == '2000.00'
    assert stats['total_customers'] == 2
    # mug: 12 - 4 = 8 left
    assert stats['low_stock_products'] == 2
    assert stats['out_of_stock_products'] == 1


def test_settings(client, admin_headers):
    resp = client.put('/api/admin/settings/whatsapp_number',
                      headers=admin_headers,
                      json={'value': '+8801940689487'})
    assert resp.status_code == 201
    resp = client.put('/api/admin/settings/whatsapp_number',
                      headers=admin_headers, json={'value': '+8801700000000'})
    assert resp.status_code == 200
    assert SiteSetting.query.count() == 1

    assert client.put('/api/admin/settings/x', headers=admin_headers,
                      json={}).status_code == 400

    public = client.get('/api/settings').get_json()
    assert public['whatsapp_number'] == '+8801700000000'
    assert public['bkash_number'] == '01747292277'


def test_offer_window(client, admin_headers):
    future = (datetime.utcnow() + timedelta(days=2)).isoformat()
    client.post('/api/admin/offers', headers=admin_headers, json={
        'title': 'Later', 'starts_at': future})
    client.post('/api/admin/offers', headers=admin_headers, json={
        'title': 'Now'})
    titles = [o['title'] for o in client.get('/api/offers').get_json()['items']]
    assert titles == ['Now']


def test_product_price_out_of_range(client, admin_headers):
    for price in ('1e40', '100000000'):
        resp = client.post('/api/admin/products', headers=admin_headers,
                           json={'name': 'Gold Mug', 'price': price})
        assert resp.status_code == 400
    assert Product.query.count() == 0


def test_deleting_product_clears_cart_lines(client, admin_headers,
                                            make_product):
    mug = make_product(price='500', stock=5)
    client.post('/api/cart/items', json={'product_id': mug.id, 'quantity': 2})

    client.delete(f'/api/admin/products/{mug.id}', headers=admin_headers)

    data = client.get('/api/cart').get_json()
    assert data['items'] == []
    assert data['total'] == '0.00'
    assert CartItem.query.count() == 0
