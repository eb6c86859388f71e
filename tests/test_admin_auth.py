# tests/test_admin_auth.py
from datetime import datetime, timedelta, timezone

from flask_jwt_extended import create_access_token

from novayra.models import db, AdminSession, AdminActivityLog

ADMIN_EMAIL = 'admin@novayra.test'
ADMIN_PASSWORD = 'admin-password-123'


def test_login_creates_a_24_hour_session(client, admin_user):
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    response = client.post('/api/admin/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    body = response.get_json()
    assert body['admin']['email'] == ADMIN_EMAIL

    session = AdminSession.query.one()
    assert session.session_token == body['token']
    assert len(session.session_token) == 64
    lifetime = session.expires_at - before
    assert timedelta(hours=23, minutes=59) < lifetime <= timedelta(hours=24, minutes=1)

    cookie = response.headers['Set-Cookie']
    assert cookie.startswith(f"adminToken={body['token']}")
    assert 'HttpOnly' in cookie


def test_login_rejects_bad_credentials_and_non_admins(client, admin_user, make_user):
    make_user(email='shopper@example.com', password='secret1')
    assert client.post('/api/admin/login', json={'email': ADMIN_EMAIL, 'password': 'wrong'}).status_code == 401
    response = client.post('/api/admin/login', json={'email': 'shopper@example.com', 'password': 'secret1'})
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid credentials'
    assert client.post('/api/admin/login', json={'email': ADMIN_EMAIL}).status_code == 400
    assert AdminSession.query.count() == 0


def test_admin_routes_require_a_session(app):
    response = app.test_client().get('/api/admin/verify')
    assert response.status_code == 401
    assert response.get_json() == {'success': False, 'message': 'Admin authentication required'}


def test_customer_jwt_is_not_an_admin_session(app, admin_user):
    token = create_access_token(identity=str(admin_user.id))
    response = app.test_client().get('/api/admin/verify', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid or expired session'


def test_token_is_accepted_from_header_cookie_and_query(app, client, admin_token):
    assert app.test_client().get('/api/admin/verify', headers={'Authorization': f'Bearer {admin_token}'}).status_code == 200
    # the login response left the cookie in this client
    assert client.get('/api/admin/verify').status_code == 200
    assert app.test_client().get(f'/api/admin/verify?token={admin_token}').status_code == 200


def test_expired_session_is_rejected(client, admin_headers):
    session = AdminSession.query.one()
    session.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.session.commit()

    response = client.get('/api/admin/profile', headers=admin_headers)
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid or expired session'


def test_revoked_admin_flag_is_checked_on_every_request(client, admin_user, admin_headers):
    admin_user.is_admin = False
    db.session.commit()
    response = client.get('/api/admin/profile', headers=admin_headers)
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Admin access denied'


def test_logout_deletes_the_session(client, admin_headers):
    response = client.post('/api/admin/logout', headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()['message'] == 'Logged out successfully'
    assert AdminSession.query.count() == 0
    assert client.get('/api/admin/verify', headers=admin_headers).status_code == 401

    actions = [entry.action for entry in AdminActivityLog.query.order_by(AdminActivityLog.id)]
    assert actions == ['ADMIN_LOGIN', 'ADMIN_LOGOUT']


def test_profile(client, admin_headers):
    response = client.get('/api/admin/profile', headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()['admin']['email'] == ADMIN_EMAIL
