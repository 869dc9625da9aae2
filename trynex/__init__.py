from flask import Flask, jsonify
from flask_migrate import Migrate
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException
from trynex.extensions import db
from trynex.config import Config
from trynex.middleware import setup_auth_middleware
import logging
import os
import time

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('app.log'),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

# Log timestamps in Bangladesh time on Linux. Storage in DB remains UTC.
try:
    os.environ.setdefault('TZ', 'Asia/Dhaka')
    time.tzset()
except AttributeError:
    pass

migrate = Migrate()
login_manager = LoginManager()

# Bengali messages for the generic HTTP errors the storefront shows as toasts
HTTP_ERROR_MESSAGES = {
    400: 'অবৈধ অনুরোধ',
    401: 'অ্যাক্সেস টোকেন প্রয়োজন',
    403: 'অনুমতি নেই',
    404: 'খুঁজে পাওয়া যায়নি',
    405: 'এই মেথড অনুমোদিত নয়',
    413: 'ফাইলের আকার ৫ এমবির বেশি হতে পারবে না',
}


def register_error_handlers(app):

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        message = HTTP_ERROR_MESSAGES.get(e.code, e.name)
        return jsonify({'error': message}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.error("Unhandled error: %s", e, exc_info=True)
        db.session.rollback()
        return jsonify({'error': 'সার্ভারে সমস্যা হয়েছে, আবার চেষ্টা করুন'}), 500


def create_app(config_class=Config):
    static_dir = os.path.abspath(
        os.path.join(
            os.path.dirname(__file__),
            "..",
            "static"))
    app = Flask(
        __name__,
        static_folder=static_dir,
        static_url_path="/static",
    )
    app.config.from_object(config_class)
    # Bengali text in JSON responses stays readable
    app.json.ensure_ascii = False

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Admins authenticate with a bearer token on every request
    from trynex.models import Admin
    from trynex.services.token_service import read_bearer_token

    @login_manager.request_loader
    def load_admin_from_request(request):
        admin_id = read_bearer_token(request)
        if admin_id is None:
            return None
        return db.session.get(Admin, admin_id)

    # Register blueprints
    from trynex.blueprints import (
        admin,
        auth,
        cart,
        orders,
        products,
        public,
    )

    # Blueprints use absolute routes.
    app.register_blueprint(public.bp, url_prefix='/')
    app.register_blueprint(products.bp, url_prefix='/')
    app.register_blueprint(cart.bp, url_prefix='/')
    app.register_blueprint(orders.bp, url_prefix='/')
    app.register_blueprint(auth.bp, url_prefix='/')
    app.register_blueprint(admin.bp, url_prefix='/')

    # Admin API protection
    setup_auth_middleware(app)
    register_error_handlers(app)

    # Note: Database tables are managed via Flask-Migrate
    # Use 'flask db upgrade' to create/update tables

    logger.info("Flask application initialized")
    return app
