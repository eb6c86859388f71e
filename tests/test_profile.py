# tests/test_profile.py
import pytest


@pytest.fixture
def checkout_data():
    return {
        'full_name': 'Asha Devi Verma',
        'phone': '9876543210',
        'address': '12 Marine Drive, Colaba',
        'city': 'Mumbai',
        'state': 'Maharashtra',
        'pincode': '400001',
    }


def test_profile_round_trip(client, customer_headers, checkout_data):
    response = client.put('/api/profile/profile', json=checkout_data, headers=customer_headers)
    assert response.status_code == 200

    profile = client.get('/api/profile/profile', headers=customer_headers).get_json()['profile']
    assert profile['full_name'] == 'Asha Devi Verma'
    assert profile['pincode'] == '400001'
    assert profile['country'] == 'India'


def test_missing_fields_are_listed(client, customer_headers, checkout_data):
    del checkout_data['city']
    del checkout_data['pincode']
    response = client.put('/api/profile/profile', json=checkout_data, headers=customer_headers)
    assert response.status_code == 400
    body = response.get_json()
    assert body['message'] == 'Missing required fields'
    assert body['errors']['missing'] == ['city', 'pincode']


@pytest.mark.parametrize('field, value', [('phone', '1234567890'), ('phone', '98765'), ('pincode', '4000')])
def test_phone_and_pincode_formats(client, customer_headers, checkout_data, field, value):
    checkout_data[field] = value
    assert client.put('/api/profile/profile', json=checkout_data, headers=customer_headers).status_code == 400


def test_save_checkout_data(client, customer, customer_headers, checkout_data):
    checkout_data['country'] = 'India'
    response = client.post('/api/profile/save-checkout-data', json=checkout_data, headers=customer_headers)
    assert response.status_code == 200
    assert response.get_json()['saved'] is True
    assert customer.city == 'Mumbai'
    assert customer.postal_code == '400001'


def test_profile_requires_login(client):
    assert client.get('/api/profile/profile').status_code == 401


def test_single_word_name_keeps_last_name(client, customer, customer_headers, checkout_data):
    checkout_data['full_name'] = 'Asha'
    response = client.put('/api/profile/profile', json=checkout_data, headers=customer_headers)
    assert response.status_code == 200
    assert customer.first_name == 'Asha'
    assert customer.last_name == 'Verma'
