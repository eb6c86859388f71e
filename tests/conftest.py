# tests/conftest.py
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from novayra import create_app
from novayra.models import db, User, Product, CartItem

ADMIN_EMAIL = 'admin@novayra.test'
ADMIN_PASSWORD = 'admin-password-123'


@pytest.fixture
def app(tmp_path):
    static_folder = tmp_path / 'public'
    static_folder.mkdir()
    app = create_app('testing', config_overrides={
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'STATIC_FOLDER': str(static_folder),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email='asha@example.com', password='secret1', is_admin=False, **fields):
        fields.setdefault('first_name', 'Asha')
        fields.setdefault('last_name', 'Verma')
        user = User(email=email, is_admin=is_admin, **fields)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def make_product(app):
    def _make_product(name='Novayra Noir', price='2499.00', stock_quantity=10, **fields):
        product = Product(name=name, price=Decimal(price), stock_quantity=stock_quantity, **fields)
        db.session.add(product)
        db.session.commit()
        return product
    return _make_product


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {'Authorization': f'Bearer {create_access_token(identity=str(user.id))}'}
    return _auth_headers


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def customer_headers(customer, auth_headers):
    return auth_headers(customer)


@pytest.fixture
def admin_user(make_user):
    return make_user(email=ADMIN_EMAIL, password=ADMIN_PASSWORD, is_admin=True,
                     first_name='Admin', last_name='Novayra')


@pytest.fixture
def admin_token(client, admin_user):
    response = client.post('/api/admin/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return response.get_json()['token']


@pytest.fixture
def admin_headers(admin_token):
    return {'Authorization': f'Bearer {admin_token}'}


@pytest.fixture
def fill_cart(app):
    def _fill_cart(user, *lines):
        for product, quantity in lines:
            db.session.add(CartItem(user_id=user.id, product_id=product.id, quantity=quantity))
        db.session.commit()
    return _fill_cart


@pytest.fixture
def shipping():
    return {
        'shipping_address': '12 Marine Drive, Colaba',
        'shipping_city': 'Mumbai',
        'shipping_state': 'Maharashtra',
        'shipping_postal_code': '400001',
        'payment_method': 'cod',
    }
