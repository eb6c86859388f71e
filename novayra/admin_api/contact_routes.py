# novayra/admin_api/contact_routes.py
from flask import request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from ..models import db, ContactMessage, ContactStatusEnum
from ..utils import admin_required, get_json_payload, get_page_args, pagination_dict

CONTACT_STATUSES = [s.value for s in ContactStatusEnum]


@admin_api_bp.route('/contacts', methods=['GET'])
@admin_required
def admin_get_contact_messages():
    page, per_page = get_page_args(default_per_page=20)
    status = request.args.get('status')
    query = ContactMessage.query
    if status:
        if status not in CONTACT_STATUSES:
            return jsonify(message="Invalid status", success=False), 400
        query = query.filter(ContactMessage.status == ContactStatusEnum(status))

    pagination = query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return jsonify(
        success=True,
        data={
            "messages": [m.to_dict() for m in pagination.items],
            "pagination": pagination_dict(pagination),
        }
    ), 200


@admin_api_bp.route('/contacts/<int:message_id>/status', methods=['PATCH'])
@admin_required
def admin_update_contact_status(message_id):
    data = get_json_payload()
    new_status = data.get('status')
    if new_status not in CONTACT_STATUSES:
        return jsonify(message="Invalid status", success=False), 400

    message = db.session.get(ContactMessage, message_id)
    if not message:
        return jsonify(message="Message not found", success=False), 404

    old_status = message.status.value
    message.status = ContactStatusEnum(new_status)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update contact message {message_id}: {e}", exc_info=True)
        return jsonify(message="Failed to update message status", success=False), 500

    current_app.activity_log_service.log_admin_action('UPDATE_CONTACT_STATUS', 'contact_messages', message_id, {
        "old_status": old_status,
        "new_status": new_status,
    })
    return jsonify(message="Message status updated successfully", success=True), 200
