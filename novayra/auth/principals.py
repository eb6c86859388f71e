# novayra/auth/principals.py
# Two ways of establishing who is calling. Customers carry a stateless JWT
# that cannot be revoked before it expires; admins carry an opaque session
# token that lives in admin_sessions and dies on logout. Both resolve to a
# Principal, and both re-read the user row on every request.
from collections import namedtuple
from datetime import datetime, timezone

from flask import current_app, request
from flask_jwt_extended import verify_jwt_in_request, get_current_user
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from ..errors import AuthError
from ..models import AdminSession


class Principal(namedtuple('Principal', ['user', 'kind', 'session'])):
    __slots__ = ()

    @property
    def is_admin(self):
        return bool(self.user and self.user.is_admin)


class CustomerTokenResolver:
    kind = 'customer'

    def resolve(self, optional=False):
        """
        Validates the bearer token and loads its user.
        With optional=True any missing or unusable token yields None instead of an error.
        """
        if optional:
            try:
                verify_jwt_in_request(optional=True)
            except (JWTExtendedException, PyJWTError) as e:
                current_app.logger.debug(f"Ignoring unusable customer token on {request.path}: {e}")
                return None
            user = get_current_user()
            return Principal(user, self.kind, None) if user else None

        # Failures raise flask_jwt_extended errors, answered by the callbacks
        # registered in create_app.
        verify_jwt_in_request()
        return Principal(get_current_user(), self.kind, None)


class AdminSessionResolver:
    kind = 'admin'

    @staticmethod
    def extract_token():
        """Authorization header first, then the adminToken cookie, then ?token=."""
        auth_header = request.headers.get('Authorization', '')
        if auth_header.startswith('Bearer '):
            token = auth_header[len('Bearer '):].strip()
            if token:
                return token
        cookie_name = current_app.config.get('ADMIN_TOKEN_COOKIE_NAME', 'adminToken')
        return request.cookies.get(cookie_name) or request.args.get('token') or None

    def resolve(self):
        token = self.extract_token()
        if not token:
            raise AuthError("Admin authentication required")

        session = AdminSession.query.filter(
            AdminSession.session_token == token,
            AdminSession.expires_at > datetime.now(timezone.utc)
        ).first()
        if not session:
            raise AuthError("Invalid or expired session")

        admin = session.admin
        if not admin or not admin.is_admin:
            current_app.logger.warning(f"Admin session {session.id} belongs to a non-admin user; access denied.")
            raise AuthError("Admin access denied")
        return Principal(admin, self.kind, session)


customer_tokens = CustomerTokenResolver()
admin_sessions = AdminSessionResolver()
