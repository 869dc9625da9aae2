from flask import request, jsonify
from flask_login import current_user
from functools import wraps
import logging

logger = logging.getLogger(__name__)

ADMIN_API_PREFIX = '/api/admin/'

# Exact admin paths that never require a token
TOKEN_WHITELIST = [
    '/api/admin/login',
]


def is_admin_path(path: str) -> bool:
    return path.startswith(ADMIN_API_PREFIX) or path == '/api/admin'


def setup_auth_middleware(app):

    @app.before_request
    def require_admin_token():
        path = request.path

        if not is_admin_path(path):
            return None

        if path in TOKEN_WHITELIST:
            return None

        # CORS preflight never carries the token
        if request.method.upper() == 'OPTIONS':
            return None

        if not current_user.is_authenticated:
            if request.headers.get('Authorization'):
                logger.warning(
                    "Rejected admin token for %s %s", request.method, path)
                return jsonify({'error': 'অবৈধ টোকেন'}), 401
            return jsonify({'error': 'অ্যাক্সেস টোকেন প্রয়োজন'}), 401

        return None


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'error': 'অ্যাক্সেস টোকেন প্রয়োজন'}), 401
        return f(*args, **kwargs)
    return decorated_function
