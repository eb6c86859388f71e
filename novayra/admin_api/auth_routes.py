# novayra/admin_api/auth_routes.py
# Admin sign-in with opaque session tokens kept in admin_sessions.
import secrets
from datetime import datetime, timezone

from flask import request, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from .. import limiter
from ..models import db, User, AdminSession
from ..utils import get_json_payload, normalize_email, admin_required


def _admin_dict(admin):
    return {
        "id": admin.id,
        "email": admin.email,
        "first_name": admin.first_name,
        "last_name": admin.last_name,
        "is_admin": admin.is_admin,
    }


def _login_rate_limit():
    return current_app.config.get('ADMIN_LOGIN_RATELIMITS', "10 per 5 minutes")


@admin_api_bp.route('/login', methods=['POST'])
@limiter.limit(_login_rate_limit)
def admin_login():
    data = get_json_payload()
    email = normalize_email(data.get('email'))
    password = data.get('password') or ''
    if not email or not password:
        return jsonify(message="Email and password are required", success=False), 400

    admin = User.query.filter_by(email=email, is_admin=True).first()
    if not admin or not admin.check_password(password):
        current_app.logger.warning(f"Failed admin login for {email} from {request.remote_addr}")
        return jsonify(message="Invalid credentials", success=False), 401

    lifetime = current_app.config['ADMIN_SESSION_LIFETIME']
    session = AdminSession(
        admin_id=admin.id,
        session_token=secrets.token_hex(32),
        expires_at=datetime.now(timezone.utc) + lifetime,
        ip_address=request.remote_addr,
        user_agent=(request.headers.get('User-Agent') or '')[:255] or None
    )
    try:
        db.session.add(session)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Could not create admin session for {email}: {e}", exc_info=True)
        return jsonify(message="Login failed", success=False), 500

    g.current_admin = admin
    current_app.activity_log_service.log_admin_action('ADMIN_LOGIN', 'admin_sessions', session.id)

    response = jsonify(success=True, message="Login successful", token=session.session_token, admin=_admin_dict(admin))
    response.set_cookie(
        current_app.config.get('ADMIN_TOKEN_COOKIE_NAME', 'adminToken'),
        session.session_token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=current_app.config.get('ADMIN_COOKIE_SECURE', False),
        samesite='Lax'
    )
    return response, 200


@admin_api_bp.route('/logout', methods=['POST'])
@admin_required
def admin_logout():
    session_id = g.admin_session.id
    try:
        db.session.delete(g.admin_session)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting admin session {session_id}: {e}", exc_info=True)
        return jsonify(message="Logout failed", success=False), 500

    current_app.activity_log_service.log_admin_action('ADMIN_LOGOUT', 'admin_sessions', session_id)
    response = jsonify(success=True, message="Logged out successfully")
    response.delete_cookie(current_app.config.get('ADMIN_TOKEN_COOKIE_NAME', 'adminToken'))
    return response, 200


@admin_api_bp.route('/profile', methods=['GET'])
@admin_required
def get_admin_profile():
    return jsonify(success=True, admin=_admin_dict(g.current_admin)), 200


@admin_api_bp.route('/verify', methods=['GET'])
@admin_required
def verify_admin_session():
    return jsonify(
        success=True,
        message="Session is valid",
        admin=_admin_dict(g.current_admin),
        expires_at=g.admin_session.expires_at.isoformat()
    ), 200
