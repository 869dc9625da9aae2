from flask import Blueprint, current_app, jsonify
from flask_login import current_user
from trynex.extensions import db
from trynex.models import Admin
from trynex.middleware import admin_required
from trynex.services.audit_service import log_audit
from trynex.services.token_service import create_admin_token
from trynex.utils import error_response, get_json_body
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__)


@bp.route('/api/admin/login', methods=['POST'])
def login():
    data = get_json_body()
    email = str(data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')

    if not email or not password:
        return error_response('ইমেইল এবং পাসওয়ার্ড প্রয়োজন')

    admin = Admin.query.filter_by(email=email).first()

    if admin is None or not admin.check_password(password):
        log_audit(
            actor_id=None,
            actor_role='ANONYMOUS',
            action='ADMIN_LOGIN_FAILED',
            target_type='ADMIN',
            target_id=admin.id if admin else None,
            payload={
                'reason': 'invalid_password' if admin else 'admin_not_found'})
        return error_response('অবৈধ ইমেইল বা পাসওয়ার্ড', 401)

    admin.last_login_at = datetime.utcnow()
    db.session.commit()

    log_audit(
        actor_id=admin.id,
        actor_role='ADMIN',
        action='ADMIN_LOGIN_SUCCESS',
        target_type='ADMIN',
        target_id=admin.id)

    return jsonify({
        'token': create_admin_token(admin),
        'token_type': 'Bearer',
        'expires_in': current_app.config['ADMIN_TOKEN_EXPIRE_HOURS'] * 3600,
        'admin': {'id': admin.id, 'email': admin.email},
    })


@bp.route('/api/admin/me', methods=['GET'])
@admin_required
def me():
    return jsonify({
        'id': current_user.id,
        'email': current_user.email,
        'last_login_at': (
            current_user.last_login_at.isoformat()
            if current_user.last_login_at else None),
    })
