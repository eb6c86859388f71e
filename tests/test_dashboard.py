# tests/test_dashboard.py
from decimal import Decimal

from novayra.models import db, Order, ContactMessage, SampleRequest, DashboardStat, AdminActivityLog
from novayra.models import OrderStatusEnum, SampleSizeEnum


def add_order(customer, number, total, status=OrderStatusEnum.PENDING):
    db.session.add(Order(order_number=number, user_id=customer.id, total_amount=Decimal(total), status=status,
                         shipping_address='12 Marine Drive, Colaba', shipping_city='Mumbai',
                         shipping_state='Maharashtra', shipping_postal_code='400001'))
    db.session.commit()


def test_stats_are_recomputed_and_written_through(client, admin_headers, customer, make_product):
    noir = make_product(stock_quantity=3)
    make_product(name='Novayra Azure', stock_quantity=50)
    add_order(customer, 'NOV-1-A', '1000.00')
    add_order(customer, 'NOV-2-B', '2500.50', status=OrderStatusEnum.PROCESSING)
    db.session.add(ContactMessage(name='Ravi', email='ravi@example.com', phone='9876543210',
                                  subject='Hello', message='Do you ship abroad?'))
    db.session.add(SampleRequest(product_id=noir.id, customer_name='Ravi', customer_email='ravi@example.com',
                                 sample_size=SampleSizeEnum.ML_2, shipping_address='1 Residency Road',
                                 shipping_city='Pune', shipping_state='MH', shipping_postal_code='411001'))
    db.session.commit()

    stats = client.get('/api/admin/dashboard/stats', headers=admin_headers).get_json()['stats']
    assert stats['total_orders'] == {'value': 2, 'period': 'all_time'}
    assert stats['total_revenue']['value'] == 3500.5
    assert stats['total_products']['value'] == 2
    assert stats['pending_orders']['value'] == 1
    assert stats['processing_orders']['value'] == 1
    assert stats['low_stock_products']['value'] == 1
    assert stats['new_contacts']['value'] == 1
    assert stats['pending_samples']['value'] == 1

    snapshot = {row.stat_name: row.stat_value for row in DashboardStat.query.all()}
    assert snapshot['total_orders'] == {'value': 2, 'period': 'all_time'}

    add_order(customer, 'NOV-3-C', '100.00')
    client.get('/api/admin/dashboard/stats', headers=admin_headers)
    assert DashboardStat.query.count() == 8
    assert DashboardStat.query.filter_by(stat_name='total_orders').one().stat_value['value'] == 3


def test_recent_orders_activity_and_low_stock(client, admin_headers, customer, make_product):
    for i in range(7):
        add_order(customer, f'NOV-{i}-X', '10.00')
    make_product(name='Almost Gone', stock_quantity=2)
    make_product(name='Plenty', stock_quantity=80)

    orders = client.get('/api/admin/dashboard/recent-orders', headers=admin_headers).get_json()['orders']
    assert len(orders) == 5
    assert orders[0]['customer']['email'] == customer.email
    assert len(client.get('/api/admin/dashboard/recent-orders?limit=2', headers=admin_headers).get_json()['orders']) == 2

    low = client.get('/api/admin/dashboard/low-stock', headers=admin_headers).get_json()['products']
    assert [p['name'] for p in low] == ['Almost Gone']
    high = client.get('/api/admin/dashboard/low-stock?threshold=100', headers=admin_headers).get_json()['products']
    assert [p['name'] for p in high] == ['Almost Gone', 'Plenty']

    activities = client.get('/api/admin/dashboard/activity', headers=admin_headers).get_json()['activities']
    assert activities[0]['action'] == 'ADMIN_LOGIN'
    assert activities[0]['admin_name'] == 'Admin Novayra'
    assert len(activities) == AdminActivityLog.query.count()
