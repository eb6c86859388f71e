# tests/test_admin_products.py
import io
import os
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from novayra.models import db, Product, ProductImage, Order, OrderItem, AdminActivityLog


def image(name='bottle.png', content=b'\x89PNG fake image bytes'):
    return io.BytesIO(content), name


def test_create_product_from_multipart_form_with_image(app, client, admin_headers):
    response = client.post('/api/admin/products', headers=admin_headers, content_type='multipart/form-data', data={
        'name': 'Novayra Velvet',
        'description': 'Soft musk',
        'price': '2999',
        'stockQuantity': '12',
        'category': 'perfume',
        'fragranceNotes': 'Musk, Iris',
        'bottleSize': '50ml',
        'image': image(),
    })
    assert response.status_code == 201
    product = Product.query.one()
    assert product.price == Decimal('2999.00')
    assert product.stock_quantity == 12
    assert product.fragrance_notes == 'Musk, Iris'
    assert product.image_url.startswith('/uploads/products/product-')

    stored = os.path.join(app.config['UPLOAD_FOLDER'], 'products', product.image_url.rsplit('/', 1)[1])
    assert os.path.isfile(stored)
    assert client.get(product.image_url).status_code == 200

    entry = AdminActivityLog.query.filter_by(action='CREATE_PRODUCT').one()
    assert entry.record_id == product.id


def test_price_must_be_positive(client, admin_headers):
    for price in ('0', '-5', 'free'):
        response = client.post('/api/admin/products', headers=admin_headers, json={
            'name': 'Zero', 'price': price, 'stock_quantity': 1,
        })
        assert response.status_code == 400
    assert Product.query.count() == 0


def test_negative_stock_and_bad_image_are_rejected(client, admin_headers):
    response = client.post('/api/admin/products', headers=admin_headers, json={
        'name': 'Neg', 'price': '10', 'stock_quantity': -1,
    })
    assert response.status_code == 400

    response = client.post('/api/admin/products', headers=admin_headers, content_type='multipart/form-data', data={
        'name': 'Script', 'price': '10', 'stockQuantity': '1', 'image': image('payload.exe'),
    })
    assert response.status_code == 400
    assert Product.query.count() == 0


def test_update_product_replaces_image_and_logs_changes(app, client, admin_headers, make_product):
    product = make_product()
    first = client.put(f'/api/admin/products/{product.id}', headers=admin_headers,
                       content_type='multipart/form-data', data={'image': image('one.png')})
    assert first.status_code == 200
    first_url = db.session.get(Product, product.id).image_url
    first_path = os.path.join(app.config['UPLOAD_FOLDER'], 'products', first_url.rsplit('/', 1)[1])
    assert os.path.isfile(first_path)

    second = client.put(f'/api/admin/products/{product.id}', headers=admin_headers,
                        content_type='multipart/form-data', data={'price': '2599.00', 'image': image('two.jpg')})
    assert second.status_code == 200
    assert not os.path.exists(first_path)
    assert db.session.get(Product, product.id).price == Decimal('2599.00')

    changes = AdminActivityLog.query.filter_by(action='UPDATE_PRODUCT').order_by(AdminActivityLog.id.desc()).first().details['changes']
    assert changes['price'] == {'old': 2499.0, 'new': 2599.0}


def test_delete_never_ordered_product_removes_it(client, admin_headers, make_product):
    product = make_product()
    response = client.delete(f'/api/admin/products/{product.id}', headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()['deleted'] is True
    assert Product.query.count() == 0


def test_delete_ordered_product_only_deactivates_it(client, admin_headers, make_product, customer):
    product = make_product()
    order = Order(order_number='NOV-1-ORDERED', user_id=customer.id, total_amount=Decimal('2499.00'),
                  shipping_address='12 Marine Drive, Colaba', shipping_city='Mumbai',
                  shipping_state='Maharashtra', shipping_postal_code='400001')
    order.items.append(OrderItem(product_id=product.id, product_name=product.name, product_price=product.price,
                                 quantity=1, subtotal=product.price))
    db.session.add(order)
    db.session.commit()

    response = client.delete(f'/api/admin/products/{product.id}', headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()['deleted'] is False
    assert db.session.get(Product, product.id).is_active is False
    assert AdminActivityLog.query.filter_by(action='DEACTIVATE_PRODUCT').count() == 1


def test_upload_gallery_images(client, admin_headers, make_product):
    product = make_product()
    response = client.post(f'/api/admin/products/{product.id}/images', headers=admin_headers,
                           content_type='multipart/form-data',
                           data={'images': [image('a.png'), image('b.webp')]})
    assert response.status_code == 201
    images = ProductImage.query.order_by(ProductImage.sort_order).all()
    assert [img.is_primary for img in images] == [True, False]

    too_many = client.post(f'/api/admin/products/{product.id}/images', headers=admin_headers,
                           content_type='multipart/form-data',
                           data={'images': [image(f'{i}.png') for i in range(6)]})
    assert too_many.status_code == 400

    none = client.post(f'/api/admin/products/{product.id}/images', headers=admin_headers,
                       content_type='multipart/form-data', data={})
    assert none.status_code == 400


def test_product_list_filters(client, admin_headers, make_product):
    make_product(name='Novayra Noir', price='2499.00', stock_quantity=0, fragrance_notes='Oud')
    make_product(name='Novayra Bloom', price='1899.00', stock_quantity=5, category='floral')
    make_product(name='Novayra Azure', price='3199.00', stock_quantity=40)

    def names(query):
        body = client.get(f'/api/admin/products{query}', headers=admin_headers).get_json()
        return sorted(p['name'] for p in body['products'])

    assert names('?stock_status=out_of_stock') == ['Novayra Noir']
    assert names('?stock_status=low_stock') == ['Novayra Bloom']
    assert names('?stock_status=in_stock') == ['Novayra Azure', 'Novayra Bloom']
    assert names('?min_price=2000&max_price=3000') == ['Novayra Noir']
    assert names('?category=floral') == ['Novayra Bloom']
    assert names('?search=oud') == ['Novayra Noir']

    body = client.get('/api/admin/products', headers=admin_headers).get_json()
    assert body['categories'] == ['floral', 'perfume']
    assert body['pagination']['total'] == 3

    assert client.get('/api/admin/products?stock_status=plenty', headers=admin_headers).status_code == 400


def test_product_detail_and_stats(client, admin_headers, make_product):
    product = make_product(stock_quantity=0)
    make_product(name='Novayra Bloom', price='1500.00', stock_quantity=4)

    detail = client.get(f'/api/admin/products/{product.id}', headers=admin_headers)
    assert detail.status_code == 200
    assert detail.get_json()['product']['images'] == []
    assert client.get('/api/admin/products/9999', headers=admin_headers).status_code == 404

    body = client.get('/api/admin/products/stats/summary', headers=admin_headers).get_json()
    assert body['stats']['total_products'] == 2
    assert body['stats']['out_of_stock'] == 1
    assert body['stats']['low_stock'] == 1
    assert body['stats']['total_stock'] == 4
    assert body['categories'] == [{'category': 'perfume', 'count': 2, 'avg_price': 1999.5}]


def test_failed_gallery_commit_rolls_back_and_removes_saved_files(app, client, admin_headers, make_product, monkeypatch):
    product = make_product()

    def failing_commit():
        raise OperationalError('INSERT INTO product_images', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', failing_commit)
    response = client.post(f'/api/admin/products/{product.id}/images', headers=admin_headers,
                           content_type='multipart/form-data',
                           data={'images': [image('a.png'), image('b.png')]})
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.get_json() == {'message': 'Internal server error', 'success': False}
    assert ProductImage.query.count() == 0
    products_folder = os.path.join(app.config['UPLOAD_FOLDER'], 'products')
    assert not os.path.isdir(products_folder) or os.listdir(products_folder) == []
