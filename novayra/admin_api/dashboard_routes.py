# novayra/admin_api/dashboard_routes.py
from flask import jsonify, current_app, request
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from ..models import db, Order, AdminActivityLog
from ..services.dashboard_service import DashboardService
from ..utils import admin_required


def _limit_arg(name, default, maximum=100):
    value = request.args.get(name, default, type=int) or default
    return min(max(value, 1), maximum)


@admin_api_bp.route('/dashboard/stats', methods=['GET'])
@admin_required
def get_dashboard_stats():
    try:
        stats = DashboardService.refresh()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error fetching dashboard stats: {e}", exc_info=True)
        return jsonify(message="Failed to get dashboard statistics", success=False), 500
    return jsonify(stats=stats, success=True), 200


@admin_api_bp.route('/dashboard/activity', methods=['GET'])
@admin_required
def get_recent_activity():
    limit = _limit_arg('limit', 10)
    entries = (AdminActivityLog.query
               .order_by(AdminActivityLog.created_at.desc(), AdminActivityLog.id.desc())
               .limit(limit)
               .all())
    return jsonify(activities=[entry.to_dict() for entry in entries], success=True), 200


@admin_api_bp.route('/dashboard/recent-orders', methods=['GET'])
@admin_required
def get_recent_orders():
    limit = _limit_arg('limit', 5)
    orders = Order.query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).all()
    return jsonify(
        orders=[o.to_dict(include_items=False, include_customer=True) for o in orders],
        success=True
    ), 200


@admin_api_bp.route('/dashboard/low-stock', methods=['GET'])
@admin_required
def get_low_stock_products():
    default_threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)
    threshold = request.args.get('threshold', default_threshold, type=int)
    if threshold is None or threshold < 0:
        threshold = default_threshold
    products = DashboardService.low_stock_products(threshold)
    return jsonify(
        products=[{
            "id": p.id,
            "name": p.name,
            "stock_quantity": p.stock_quantity,
            "price": float(p.price),
            "category": p.category,
        } for p in products],
        threshold=threshold,
        success=True
    ), 200
