# tests/test_samples_and_contact.py
import pytest

from novayra.models import db, SampleRequest, ContactMessage, AdminActivityLog, SampleStatusEnum, ContactStatusEnum


@pytest.fixture
def sample_payload():
    def _sample_payload(product, **overrides):
        payload = {
            'product_id': product.id,
            'customer_name': 'Ravi Shah',
            'customer_email': 'Ravi@Example.com',
            'sample_size': '5ml',
            'shipping_address': '1 Residency Road, Camp',
            'shipping_city': 'Pune',
            'shipping_state': 'Maharashtra',
            'shipping_postal_code': '411001',
        }
        payload.update(overrides)
        return payload
    return _sample_payload


@pytest.fixture
def contact_payload():
    return {
        'name': 'Meera',
        'email': 'meera@example.com',
        'phone': '9876543210',
        'subject': 'Wholesale',
        'message': 'Do you offer wholesale pricing for boutiques?',
    }


def test_guest_can_request_a_sample(client, make_product, sample_payload):
    product = make_product()
    response = client.post('/api/samples/request', json=sample_payload(product))
    assert response.status_code == 201
    assert response.get_json()['data']['product_name'] == 'Novayra Noir'

    request_row = SampleRequest.query.one()
    assert request_row.user_id is None
    assert request_row.customer_email == 'ravi@example.com'
    assert request_row.status == SampleStatusEnum.PENDING


def test_bad_token_is_treated_as_guest(client, make_product, sample_payload):
    product = make_product()
    response = client.post('/api/samples/request', json=sample_payload(product),
                           headers={'Authorization': 'Bearer garbage'})
    assert response.status_code == 201
    assert SampleRequest.query.one().user_id is None


def test_logged_in_user_cannot_request_same_open_sample_twice(client, customer, customer_headers, make_product, sample_payload):
    product = make_product()
    assert client.post('/api/samples/request', json=sample_payload(product), headers=customer_headers).status_code == 201
    duplicate = client.post('/api/samples/request', json=sample_payload(product), headers=customer_headers)
    assert duplicate.status_code == 400
    assert duplicate.get_json()['message'] == 'You have already requested a sample for this product'

    SampleRequest.query.one().status = SampleStatusEnum.REJECTED
    db.session.commit()
    assert client.post('/api/samples/request', json=sample_payload(product), headers=customer_headers).status_code == 201

    mine = client.get('/api/samples/my-requests', headers=customer_headers).get_json()['data']['requests']
    assert len(mine) == 2
    assert mine[0]['product_name'] == 'Novayra Noir'


def test_sample_request_validation(client, make_product, sample_payload):
    product = make_product()
    hidden = make_product(name='Hidden', is_active=False)
    assert client.post('/api/samples/request', json=sample_payload(product, sample_size='50ml')).status_code == 400
    assert client.post('/api/samples/request', json=sample_payload(product, customer_email='nope')).status_code == 400
    assert client.post('/api/samples/request', json=sample_payload(product, shipping_postal_code='12')).status_code == 400
    missing = client.post('/api/samples/request', json=sample_payload(hidden))
    assert missing.status_code == 404
    assert missing.get_json()['message'] == 'Product not found or unavailable'
    assert SampleRequest.query.count() == 0


def test_admin_reviews_sample_requests(client, admin_headers, make_product, sample_payload):
    product = make_product()
    client.post('/api/samples/request', json=sample_payload(product))
    request_id = SampleRequest.query.one().id

    listed = client.get('/api/admin/samples?status=pending', headers=admin_headers).get_json()['data']
    assert [r['id'] for r in listed['requests']] == [request_id]

    response = client.patch(f'/api/admin/samples/{request_id}/status', headers=admin_headers,
                            json={'status': 'approved', 'admin_notes': 'Ship with next batch'})
    assert response.status_code == 200
    assert SampleRequest.query.one().status == SampleStatusEnum.APPROVED
    entry = AdminActivityLog.query.filter_by(action='UPDATE_SAMPLE_STATUS').one()
    assert entry.details['old_status'] == 'pending'
    assert entry.details['new_status'] == 'approved'

    assert client.patch(f'/api/admin/samples/{request_id}/status', headers=admin_headers,
                        json={'status': 'lost'}).status_code == 400

    overview = client.get('/api/admin/samples/stats/overview', headers=admin_headers).get_json()['data']
    assert overview['statusStats'] == [{'status': 'approved', 'count': 1}]
    assert overview['recentRequests'] == 1
    assert overview['popularProducts'] == [{'name': 'Novayra Noir', 'request_count': 1}]


def test_contact_form_submission(client, contact_payload):
    response = client.post('/api/contact/submit', json=contact_payload)
    assert response.status_code == 201
    assert response.get_json()['data']['subject'] == 'Wholesale'
    assert ContactMessage.query.one().status == ContactStatusEnum.NEW


@pytest.mark.parametrize('field, value', [
    ('name', 'M'),
    ('email', 'meera-at-example'),
    ('phone', '12345'),
    ('subject', ''),
    ('message', 'Too short'),
])
def test_contact_form_validation(client, contact_payload, field, value):
    contact_payload[field] = value
    assert client.post('/api/contact/submit', json=contact_payload).status_code == 400
    assert ContactMessage.query.count() == 0


def test_admin_manages_contact_messages(client, admin_headers, contact_payload):
    client.post('/api/contact/submit', json=contact_payload)
    message_id = ContactMessage.query.one().id

    new_messages = client.get('/api/admin/contacts?status=new', headers=admin_headers).get_json()['data']['messages']
    assert [m['id'] for m in new_messages] == [message_id]

    response = client.patch(f'/api/admin/contacts/{message_id}/status', json={'status': 'replied'}, headers=admin_headers)
    assert response.status_code == 200
    assert ContactMessage.query.one().status == ContactStatusEnum.REPLIED
    assert AdminActivityLog.query.filter_by(action='UPDATE_CONTACT_STATUS').one().details == {
        'old_status': 'new', 'new_status': 'replied'}

    assert client.get('/api/admin/contacts?status=new', headers=admin_headers).get_json()['data']['messages'] == []
    assert client.patch('/api/admin/contacts/9999/status', json={'status': 'read'}, headers=admin_headers).status_code == 404
