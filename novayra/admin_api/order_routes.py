# novayra/admin_api/order_routes.py
from collections import OrderedDict
from datetime import datetime, timedelta, timezone

from flask import request, jsonify, current_app
from sqlalchemy import func, case, or_
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from ..errors import ValidationError
from ..models import db, Order, User, OrderStatusEnum, PaymentStatusEnum
from ..services.order_service import OrderService
from ..utils import admin_required, get_json_payload, sanitize_input, get_page_args, pagination_dict

ORDER_STATUSES = [s.value for s in OrderStatusEnum]
PAYMENT_STATUSES = [s.value for s in PaymentStatusEnum]
MONTHLY_REVENUE_MONTHS = 6


def _parse_day(value, label):
    try:
        return datetime.strptime(value, '%Y-%m-%d')
    except ValueError:
        raise ValidationError(f"{label} must be a date in YYYY-MM-DD format")


class OrderFilters:
    """Optional admin list filters, read from the query string and applied as bound predicates."""

    def __init__(self, search=None, status=None, payment_status=None, date_from=None, date_to=None):
        self.search = search
        self.status = status
        self.payment_status = payment_status
        self.date_from = date_from
        self.date_to = date_to

    @classmethod
    def from_args(cls, args):
        status = args.get('status') or None
        if status and status not in ORDER_STATUSES:
            raise ValidationError("Invalid status")
        payment_status = args.get('payment_status') or args.get('paymentStatus') or None
        if payment_status and payment_status not in PAYMENT_STATUSES:
            raise ValidationError("Invalid payment status")
        date_from = args.get('date_from') or args.get('dateFrom')
        date_to = args.get('date_to') or args.get('dateTo')
        return cls(
            search=sanitize_input(args.get('search'), max_length=100) or None,
            status=OrderStatusEnum(status) if status else None,
            payment_status=PaymentStatusEnum(payment_status) if payment_status else None,
            date_from=_parse_day(date_from, 'date_from') if date_from else None,
            date_to=_parse_day(date_to, 'date_to') if date_to else None,
        )

    def apply(self, query):
        if self.search:
            pattern = f"%{self.search}%"
            query = query.filter(or_(
                Order.order_number.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            ))
        if self.status:
            query = query.filter(Order.status == self.status)
        if self.payment_status:
            query = query.filter(Order.payment_status == self.payment_status)
        if self.date_from:
            query = query.filter(Order.created_at >= self.date_from)
        if self.date_to:
            # inclusive of the whole end day
            query = query.filter(Order.created_at < self.date_to + timedelta(days=1))
        return query


def _get_order_or_404(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        return None, (jsonify(message="Order not found", success=False), 404)
    return order, None


@admin_api_bp.route('/orders', methods=['GET'])
@admin_required
def admin_get_orders():
    filters = OrderFilters.from_args(request.args)
    page, per_page = get_page_args(default_per_page=20)

    query = filters.apply(Order.query.join(User, Order.user_id == User.id))
    pagination = query.order_by(Order.created_at.desc(), Order.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    return jsonify(
        orders=[o.to_dict(include_customer=True) for o in pagination.items],
        pagination=pagination_dict(pagination),
        success=True
    ), 200


@admin_api_bp.route('/orders/<int:order_id>', methods=['GET'])
@admin_required
def admin_get_order(order_id):
    order, error = _get_order_or_404(order_id)
    if error:
        return error
    return jsonify(order=order.to_dict(include_customer=True), success=True), 200


@admin_api_bp.route('/orders/<int:order_id>/status', methods=['PATCH'])
@admin_required
def admin_update_order_status(order_id):
    data = get_json_payload()
    new_status = data.get('status')
    if not new_status:
        return jsonify(message="Status is required", success=False), 400
    if new_status not in ORDER_STATUSES:
        return jsonify(message="Invalid status", success=False), 400

    order, error = _get_order_or_404(order_id)
    if error:
        return error

    details = OrderService.update_status(
        order,
        OrderStatusEnum(new_status),
        admin_notes=sanitize_input(data['admin_notes']) if 'admin_notes' in data else None,
        tracking_number=sanitize_input(data['tracking_number'], max_length=100) if 'tracking_number' in data else None
    )
    current_app.activity_log_service.log_admin_action('UPDATE_ORDER_STATUS', 'orders', order.id, details)
    return jsonify(message="Order status updated successfully", order=order.to_dict(), success=True), 200


@admin_api_bp.route('/orders/<int:order_id>/payment', methods=['PATCH'])
@admin_required
def admin_update_payment_status(order_id):
    data = get_json_payload()
    new_status = data.get('payment_status')
    if not new_status:
        return jsonify(message="Payment status is required", success=False), 400
    if new_status not in PAYMENT_STATUSES:
        return jsonify(message="Invalid payment status", success=False), 400

    order, error = _get_order_or_404(order_id)
    if error:
        return error

    details = OrderService.update_payment_status(order, PaymentStatusEnum(new_status))
    current_app.activity_log_service.log_admin_action('UPDATE_PAYMENT_STATUS', 'orders', order.id, details)
    return jsonify(message="Payment status updated successfully", order=order.to_dict(), success=True), 200


@admin_api_bp.route('/orders/<int:order_id>/notes', methods=['PATCH'])
@admin_required
def admin_update_order_notes(order_id):
    data = get_json_payload()
    admin_notes = sanitize_input(data.get('admin_notes'))
    if admin_notes is None:
        return jsonify(message="Admin notes are required", success=False), 400

    order, error = _get_order_or_404(order_id)
    if error:
        return error

    old_notes = order.admin_notes
    order.admin_notes = admin_notes
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update notes of order {order_id}: {e}", exc_info=True)
        return jsonify(message="Failed to update admin notes", success=False), 500

    current_app.activity_log_service.log_admin_action('UPDATE_ORDER_NOTES', 'orders', order.id, {
        "order_number": order.order_number,
        "old_admin_notes": old_notes,
        "admin_notes": admin_notes,
    })
    return jsonify(message="Admin notes updated successfully", success=True), 200


def _months_back(now, months):
    """First day of the month `months - 1` months before now's month."""
    month_index = now.year * 12 + (now.month - 1) - (months - 1)
    return datetime(month_index // 12, month_index % 12 + 1, 1)


@admin_api_bp.route('/orders/stats/summary', methods=['GET'])
@admin_required
def admin_order_stats():
    row = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.total_amount), 0),
        *[func.count(case((Order.status == s, 1))) for s in OrderStatusEnum],
        *[func.count(case((Order.payment_status == s, 1))) for s in PaymentStatusEnum]
    ).one()

    total_orders = row[0] or 0
    total_revenue = round(float(row[1] or 0), 2)
    status_counts = row[2:2 + len(OrderStatusEnum)]
    payment_counts = row[2 + len(OrderStatusEnum):]

    stats = {
        "total_orders": total_orders,
        "total_revenue": total_revenue,
        "average_order_value": round(total_revenue / total_orders, 2) if total_orders else 0,
    }
    for status, count in zip(OrderStatusEnum, status_counts):
        stats[f"{status.value}_orders"] = count or 0
    for status, count in zip(PaymentStatusEnum, payment_counts):
        stats[f"{status.value}_payments"] = count or 0

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    since = _months_back(now, MONTHLY_REVENUE_MONTHS)
    monthly = OrderedDict()
    for created_at, amount in (db.session.query(Order.created_at, Order.total_amount)
                               .filter(Order.created_at >= since)
                               .order_by(Order.created_at.desc())):
        bucket = monthly.setdefault(created_at.strftime('%Y-%m'), {"revenue": 0.0, "orders": 0})
        bucket['revenue'] += float(amount)
        bucket['orders'] += 1

    monthly_revenue = [{"month": month, "revenue": round(v['revenue'], 2), "orders": v['orders']}
                       for month, v in monthly.items()]
    return jsonify(stats=stats, monthlyRevenue=monthly_revenue, success=True), 200
