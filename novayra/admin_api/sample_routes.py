# novayra/admin_api/sample_routes.py
from datetime import datetime, timedelta, timezone

from flask import request, jsonify, current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from ..models import db, SampleRequest, Product, SampleStatusEnum
from ..utils import admin_required, get_json_payload, sanitize_input, get_page_args, pagination_dict

SAMPLE_STATUSES = [s.value for s in SampleStatusEnum]


@admin_api_bp.route('/samples', methods=['GET'])
@admin_required
def admin_get_sample_requests():
    page, per_page = get_page_args()
    status = request.args.get('status')
    query = SampleRequest.query
    if status:
        if status not in SAMPLE_STATUSES:
            return jsonify(message="Invalid status", success=False), 400
        query = query.filter(SampleRequest.status == SampleStatusEnum(status))

    pagination = query.order_by(SampleRequest.created_at.desc(), SampleRequest.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return jsonify(
        success=True,
        data={
            "requests": [r.to_dict() for r in pagination.items],
            "pagination": pagination_dict(pagination),
        }
    ), 200


@admin_api_bp.route('/samples/<int:request_id>', methods=['GET'])
@admin_required
def admin_get_sample_request(request_id):
    sample_request = db.session.get(SampleRequest, request_id)
    if not sample_request:
        return jsonify(message="Sample request not found", success=False), 404
    return jsonify(success=True, data={"request": sample_request.to_dict()}), 200


@admin_api_bp.route('/samples/<int:request_id>/status', methods=['PATCH'])
@admin_required
def admin_update_sample_status(request_id):
    data = get_json_payload()
    new_status = data.get('status')
    if new_status not in SAMPLE_STATUSES:
        return jsonify(message=f"Status must be one of: {', '.join(SAMPLE_STATUSES)}", success=False), 400

    sample_request = db.session.get(SampleRequest, request_id)
    if not sample_request:
        return jsonify(message="Sample request not found", success=False), 404

    details = {"old_status": sample_request.status.value, "new_status": new_status}
    sample_request.status = SampleStatusEnum(new_status)
    if 'admin_notes' in data:
        details['admin_notes'] = sanitize_input(data.get('admin_notes'))
        sample_request.admin_notes = details['admin_notes']
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update sample request {request_id}: {e}", exc_info=True)
        return jsonify(message="Failed to update sample request status", success=False), 500

    current_app.activity_log_service.log_admin_action('UPDATE_SAMPLE_STATUS', 'sample_requests', request_id, details)
    return jsonify(message="Sample request status updated successfully", success=True), 200


@admin_api_bp.route('/samples/stats/overview', methods=['GET'])
@admin_required
def admin_sample_stats():
    status_rows = (db.session.query(SampleRequest.status, func.count(SampleRequest.id))
                   .group_by(SampleRequest.status)
                   .all())
    since = datetime.now(timezone.utc) - timedelta(days=7)
    recent = SampleRequest.query.filter(SampleRequest.created_at >= since).count()
    popular = (db.session.query(Product.name, func.count(SampleRequest.id).label('request_count'))
               .join(Product, SampleRequest.product_id == Product.id)
               .group_by(Product.id, Product.name)
               .order_by(func.count(SampleRequest.id).desc())
               .limit(5)
               .all())
    return jsonify(
        success=True,
        data={
            "statusStats": [{"status": status.value, "count": count} for status, count in status_rows],
            "recentRequests": recent,
            "popularProducts": [{"name": name, "request_count": count} for name, count in popular],
        }
    ), 200
