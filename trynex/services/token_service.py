from datetime import datetime, timedelta
from flask import current_app
import jwt
import logging

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'


def create_admin_token(admin):
    expires = datetime.utcnow() + timedelta(
        hours=current_app.config['ADMIN_TOKEN_EXPIRE_HOURS'])
    payload = {
        'sub': str(admin.id),
        'email': admin.email,
        'exp': expires,
    }
    return jwt.encode(
        payload, current_app.config['SECRET_KEY'], algorithm=ALGORITHM)


def decode_admin_token(token):
    """Return the admin id carried by ``token`` or None when it is invalid."""
    try:
        data = jwt.decode(
            token,
            current_app.config['SECRET_KEY'],
            algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Expired admin token presented")
        return None
    except jwt.InvalidTokenError:
        return None

    try:
        return int(data.get('sub'))
    except (TypeError, ValueError):
        return None


def read_bearer_token(request):
    auth = request.headers.get('Authorization', '')
    if not auth.startswith('Bearer '):
        return None
    token = auth[len('Bearer '):].strip()
    if not token:
        return None
    return decode_admin_token(token)
