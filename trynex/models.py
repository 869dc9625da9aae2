from trynex.extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from sqlalchemy import CheckConstraint
import enum
import json


class OrderStatus(enum.Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


class PaymentMethod(enum.Enum):
    BKASH = 'bkash'
    NAGAD = 'nagad'
    ROCKET = 'rocket'
    CASH_ON_DELIVERY = 'cash_on_delivery'


class DiscountType(enum.Enum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'


class AnalyticsEventType(enum.Enum):
    PAGE_VIEW = 'page_view'
    PRODUCT_VIEW = 'product_view'
    ADD_TO_CART = 'add_to_cart'
    PURCHASE = 'purchase'


def _load_json(raw, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


class Admin(UserMixin, db.Model):
    __tablename__ = 'admins'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f'<Admin {self.email}>'


class Category(db.Model):
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    name_bengali = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<Category {self.name}>'


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    name_bengali = db.Column(db.String(200), nullable=True)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    # Category name as shown in the storefront filters
    category = db.Column(db.String(100), nullable=True, index=True)
    # Absolute URL or a path under /static/
    image_url = db.Column(db.String(500), nullable=True)
    is_featured = db.Column(db.Boolean, default=False, nullable=False)
    is_latest = db.Column(db.Boolean, default=False, nullable=False)
    is_best_selling = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_product_stock'),
    )

    def __repr__(self):
        return f'<Product {self.name}>'


class Cart(db.Model):
    __tablename__ = 'carts'

    id = db.Column(db.Integer, primary_key=True)
    # Random token kept in the signed session cookie
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    items = db.relationship(
        'CartItem',
        backref='cart',
        lazy='dynamic',
        cascade='all, delete-orphan',
        order_by='CartItem.id')

    def __repr__(self):
        return f'<Cart {self.id}>'


class CartItem(db.Model):
    __tablename__ = 'cart_items'

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'carts.id',
            ondelete='CASCADE'),
        nullable=False,
        index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'products.id',
            ondelete='CASCADE'),
        nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    # Price and name at the time the item was added
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    # JSON: text/color/size/font/instructions/uploaded_images
    customization_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    product = db.relationship('Product')

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_cart_item_quantity'),
    )

    def set_customization(self, data):
        if data:
            self.customization_json = json.dumps(
                data, ensure_ascii=False, sort_keys=True)
        else:
            self.customization_json = None

    def get_customization(self):
        return _load_json(self.customization_json, None)

    def __repr__(self):
        return f'<CartItem cart={self.cart_id} product={self.product_id}>'


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    tracking_id = db.Column(
        db.String(32),
        unique=True,
        nullable=False,
        index=True)
    customer_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), nullable=False, index=True)
    email = db.Column(db.String(120), nullable=True)
    district = db.Column(db.String(100), nullable=False)
    thana = db.Column(db.String(100), nullable=False)
    address = db.Column(db.Text, nullable=True)
    # JSON array of line items
    items_json = db.Column(db.Text, nullable=False, default='[]')
    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    delivery_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    promo_code = db.Column(db.String(50), nullable=True)
    # JSON: method/transaction_id/sender_number/screenshot_path
    payment_info_json = db.Column(db.Text, nullable=True)
    status = db.Column(
        db.Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True)
    custom_instructions = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    def set_items(self, items):
        self.items_json = json.dumps(items, ensure_ascii=False)

    def get_items(self):
        from trynex.services.order_service import parse_order_items
        return parse_order_items(self.items_json)

    def set_payment_info(self, data):
        self.payment_info_json = json.dumps(data or {}, ensure_ascii=False)

    def get_payment_info(self):
        return _load_json(self.payment_info_json, {})

    def __repr__(self):
        return f'<Order {self.tracking_id}>'


class Offer(db.Model):
    __tablename__ = 'offers'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    discount_percentage = db.Column(db.Integer, nullable=True)
    min_order_amount = db.Column(db.Numeric(10, 2), nullable=True)
    starts_at = db.Column(db.DateTime, nullable=True)
    expiry = db.Column(db.DateTime, nullable=True)
    active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<Offer {self.title}>'


class PromoCode(db.Model):
    __tablename__ = 'promo_codes'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    discount_type = db.Column(db.Enum(DiscountType), nullable=False)
    discount_value = db.Column(db.Numeric(10, 2), nullable=False)
    min_order_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    max_discount = db.Column(db.Numeric(10, 2), nullable=True)
    usage_limit = db.Column(db.Integer, nullable=True)
    used_count = db.Column(db.Integer, nullable=False, default=0)
    expires_at = db.Column(db.DateTime, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<PromoCode {self.code}>'


class SiteSetting(db.Model):
    __tablename__ = 'site_settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=True)
    description = db.Column(db.Text, nullable=True)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False)

    def __repr__(self):
        return f'<SiteSetting {self.key}>'


class AnalyticsEvent(db.Model):
    __tablename__ = 'analytics_events'

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(
        db.Enum(AnalyticsEventType),
        nullable=False,
        index=True)
    page_url = db.Column(db.String(500), nullable=True)
    product_id = db.Column(db.Integer, nullable=True)
    session_id = db.Column(db.String(100), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    def set_metadata(self, data):
        self.metadata_json = json.dumps(data, ensure_ascii=False)

    def get_metadata(self):
        return _load_json(self.metadata_json, {})

    def __repr__(self):
        return f'<AnalyticsEvent {self.event_type.value}>'


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(
        db.Integer,
        db.ForeignKey(
            'admins.id',
            ondelete='SET NULL'),
        nullable=True)
    # ADMIN, CUSTOMER or SYSTEM
    actor_role = db.Column(db.String(20), nullable=False)
    # e.g., ORDER_CREATE, ORDER_STATUS_UPDATE, PRODUCT_DELETE
    action = db.Column(db.String(100), nullable=False)
    # ORDER, PRODUCT, CATEGORY, etc.
    target_type = db.Column(db.String(50), nullable=True)
    target_id = db.Column(db.Integer, nullable=True)
    ip = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(500), nullable=True)
    # JSON format key field snapshot
    payload_json = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True)

    actor = db.relationship('Admin', foreign_keys=[actor_id])

    def set_payload(self, data):
        self.payload_json = json.dumps(data, ensure_ascii=False)

    def get_payload(self):
        if self.payload_json:
            return json.loads(self.payload_json)
        return {}

    def __repr__(self):
        return f'<AuditLog {self.id} action={self.action}>'
