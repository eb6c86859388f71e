# tests/test_settings.py
import pytest

from novayra.models import db, SiteSetting, AdminActivityLog
from novayra.services.settings_service import SettingsService, DEFAULT_SITE_SETTINGS


@pytest.fixture
def seeded_settings(app):
    SettingsService.seed_defaults()
    db.session.commit()


def test_settings_are_grouped_by_prefix(client, admin_headers, seeded_settings):
    groups = client.get('/api/admin/settings', headers=admin_headers).get_json()['settings']
    assert set(groups) == {'general', 'email', 'payment', 'shipping', 'social', 'seo', 'maintenance'}
    assert 'general_site_name' in [s['setting_key'] for s in groups['general']]
    assert [s['setting_key'] for s in groups['seo']] == ['seo_meta_description', 'seo_meta_keywords', 'seo_meta_title']
    assert groups['maintenance'] == []


def test_update_changes_known_keys_and_logs_old_and_new(client, admin_headers, seeded_settings):
    response = client.put('/api/admin/settings', headers=admin_headers, json={'settings': [
        {'setting_key': 'general_site_name', 'setting_value': 'Novayra Paris'},
        {'setting_key': 'shipping_default_cost', 'setting_value': 150},
        {'setting_key': 'no_such_key', 'setting_value': 'x'},
    ]})
    assert response.status_code == 200
    assert response.get_json()['skipped'] == ['no_such_key']
    assert SiteSetting.query.filter_by(setting_key='general_site_name').one().setting_value == 'Novayra Paris'
    assert SiteSetting.query.filter_by(setting_key='shipping_default_cost').one().setting_value == '150'
    assert SiteSetting.query.filter_by(setting_key='no_such_key').first() is None

    entry = AdminActivityLog.query.filter_by(action='UPDATE_SETTINGS').one()
    assert entry.details['changes']['general_site_name'] == {'old': 'Novayra', 'new': 'Novayra Paris'}


def test_update_requires_settings_array(client, admin_headers):
    response = client.put('/api/admin/settings', headers=admin_headers, json={'settings': 'nope'})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Settings array is required'


def test_reset_restores_defaults(client, admin_headers, seeded_settings):
    setting = SiteSetting.query.filter_by(setting_key='payment_currency').one()
    setting.setting_value = 'USD'
    db.session.commit()

    response = client.post('/api/admin/settings/reset', headers=admin_headers)
    assert response.status_code == 200
    assert SiteSetting.query.filter_by(setting_key='payment_currency').one().setting_value == 'INR'
    assert SiteSetting.query.count() == len(DEFAULT_SITE_SETTINGS)
    assert AdminActivityLog.query.filter_by(action='RESET_SETTINGS').one().details == {'reset_settings': len(DEFAULT_SITE_SETTINGS)}


def test_test_email_is_simulated(client, admin_headers, seeded_settings):
    assert client.post('/api/admin/settings/test-email', headers=admin_headers, json={}).status_code == 400
    body = client.post('/api/admin/settings/test-email', headers=admin_headers, json={'email': 'ops@novayra.com'}).get_json()
    assert body['success'] is True
    assert body['message'] == 'Test email would be sent to ops@novayra.com'
    assert body['config'] == {'smtp_host': 'smtp.gmail.com', 'smtp_port': '587', 'smtp_user': 'Not configured'}


def test_seed_defaults_keeps_existing_values(app):
    db.session.add(SiteSetting(setting_key='general_site_name', setting_value='Custom'))
    db.session.commit()
    created = SettingsService.seed_defaults()
    db.session.commit()
    assert created == len(DEFAULT_SITE_SETTINGS) - 1
    assert SiteSetting.query.filter_by(setting_key='general_site_name').one().setting_value == 'Custom'


@pytest.mark.parametrize('bad_key', [['general_site_name'], 5, '   '])
def test_update_rejects_non_text_keys(client, admin_headers, seeded_settings, bad_key):
    response = client.put('/api/admin/settings', headers=admin_headers,
                          json={'settings': [{'setting_key': bad_key, 'setting_value': 'x'}]})
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Settings array is required'
    assert AdminActivityLog.query.filter_by(action='UPDATE_SETTINGS').count() == 0
