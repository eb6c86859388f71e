# novayra/admin_api/site_management_routes.py
from flask import jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from ..models import db
from ..services.settings_service import SettingsService
from ..utils import admin_required, get_json_payload, normalize_email, is_valid_email


@admin_api_bp.route('/settings', methods=['GET'])
@admin_required
def get_site_settings():
    return jsonify(settings=SettingsService.grouped(), success=True), 200


@admin_api_bp.route('/settings', methods=['PUT'])
@admin_required
def update_site_settings():
    data = get_json_payload()
    settings = data.get('settings')
    if not isinstance(settings, list) or not all(isinstance(s, dict) and isinstance(s.get('setting_key'), str) and s['setting_key'].strip() for s in settings):
        return jsonify(message="Settings array is required", success=False), 400

    try:
        changes, skipped = SettingsService.update(settings)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating site settings: {e}", exc_info=True)
        return jsonify(message="Failed to update settings", success=False), 500

    if skipped:
        current_app.logger.info(f"Ignored unknown setting keys: {', '.join(skipped)}")
    current_app.activity_log_service.log_admin_action('UPDATE_SETTINGS', 'site_settings', None, {
        "updated_settings": len(changes),
        "changes": changes,
    })
    return jsonify(message="Settings updated successfully", updated=len(changes), skipped=skipped, success=True), 200


@admin_api_bp.route('/settings/test-email', methods=['POST'])
@admin_required
def test_email_settings():
    data = get_json_payload()
    email = normalize_email(data.get('email'))
    if not email:
        return jsonify(message="Email address is required", success=False), 400
    if not is_valid_email(email):
        return jsonify(message="Invalid email address", success=False), 400

    # No mail transport is wired in; report what would be used.
    email_config = SettingsService.values_with_prefix('email_')
    current_app.logger.info(f"Simulated test email to {email} via {email_config.get('email_smtp_host') or 'unconfigured host'}")
    return jsonify(
        success=True,
        message=f"Test email would be sent to {email}",
        config={
            "smtp_host": email_config.get('email_smtp_host') or 'Not configured',
            "smtp_port": email_config.get('email_smtp_port') or 'Not configured',
            "smtp_user": email_config.get('email_smtp_user') or 'Not configured',
        }
    ), 200


@admin_api_bp.route('/settings/reset', methods=['POST'])
@admin_required
def reset_site_settings():
    try:
        count = SettingsService.reset_to_defaults()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error resetting site settings: {e}", exc_info=True)
        return jsonify(message="Failed to reset settings", success=False), 500

    current_app.activity_log_service.log_admin_action('RESET_SETTINGS', 'site_settings', None, {"reset_settings": count})
    return jsonify(message="Settings reset to default values", success=True), 200
