# tests/test_products.py
from novayra.models import db, Product, ProductImage


def test_catalog_lists_only_active_products(client, make_product):
    make_product(name='Visible')
    make_product(name='Retired', is_active=False)
    products = client.get('/api/products').get_json()['data']['products']
    assert [p['name'] for p in products] == ['Visible']
    assert products[0]['price'] == 2499.0


def test_product_detail_includes_images(client, make_product):
    product = make_product()
    db.session.add(ProductImage(product_id=product.id, image_url='/uploads/products/a.png', is_primary=True))
    db.session.commit()

    body = client.get(f'/api/products/{product.id}').get_json()
    assert body['data']['product']['images'][0]['image_url'] == '/uploads/products/a.png'
    assert client.get('/api/products/9999').status_code == 404


def test_products_by_category(client, make_product):
    make_product(name='Rose Mist', category='floral')
    make_product(name='Noir')
    products = client.get('/api/products/category/floral').get_json()['data']['products']
    assert [p['name'] for p in products] == ['Rose Mist']


def test_catalog_writes_need_an_admin_flagged_account(client, customer_headers, make_user, auth_headers):
    payload = {'name': 'Novayra Ember', 'price': '2799', 'stock_quantity': 8}
    assert client.post('/api/products', json=payload).status_code == 401
    forbidden = client.post('/api/products', json=payload, headers=customer_headers)
    assert forbidden.status_code == 403
    assert forbidden.get_json()['message'] == 'Admin access required'

    admin = make_user(email='boss@example.com', is_admin=True)
    created = client.post('/api/products', json=payload, headers=auth_headers(admin))
    assert created.status_code == 201
    product_id = created.get_json()['data']['product']['id']

    updated = client.put(f'/api/products/{product_id}', json={'stock_quantity': 3}, headers=auth_headers(admin))
    assert updated.status_code == 200
    assert updated.get_json()['data']['product']['stock_quantity'] == 3
    assert client.put(f'/api/products/{product_id}', json={'price': 0}, headers=auth_headers(admin)).status_code == 400

    assert client.delete(f'/api/products/{product_id}', headers=auth_headers(admin)).status_code == 200
    assert db.session.get(Product, product_id).is_active is False
