# novayra/orders/routes.py
from flask import Blueprint, jsonify, current_app, g

from ..models import db, Order, PaymentMethodEnum
from ..services.order_service import OrderService
from ..services.whatsapp_service import build_order_message, build_whatsapp_link
from ..utils import get_json_payload, require_text, optional_text, customer_required

orders_bp = Blueprint('orders_bp', __name__, url_prefix='/api/orders')

PAYMENT_METHODS = [m.value for m in PaymentMethodEnum]


def _shipping_from(data):
    payment_method = (data.get('payment_method') or '').strip().lower()
    if payment_method not in PAYMENT_METHODS:
        return None, f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}"
    return {
        "shipping_address": require_text(data, 'shipping_address', label='Shipping address', min_length=10),
        "shipping_city": require_text(data, 'shipping_city', label='City', min_length=2, max_length=100),
        "shipping_state": require_text(data, 'shipping_state', label='State', min_length=2, max_length=100),
        "shipping_postal_code": require_text(data, 'shipping_postal_code', label='Postal code', min_length=5, max_length=20),
        "shipping_country": optional_text(data, 'shipping_country', max_length=100) or 'India',
        "payment_method": PaymentMethodEnum(payment_method),
        "notes": optional_text(data, 'notes'),
    }, None


def _get_visible_order(order_id):
    """The order if the caller owns it or is an admin, else None."""
    order = db.session.get(Order, order_id)
    if not order:
        return None
    user = g.current_user
    if order.user_id != user.id and not user.is_admin:
        current_app.logger.warning(f"User {user.id} tried to read order {order_id} of user {order.user_id}.")
        return None
    return order


@orders_bp.route('/place', methods=['POST'])
@customer_required
def place_order():
    shipping, error = _shipping_from(get_json_payload())
    if error:
        return jsonify(message=error, success=False), 400

    order = OrderService.place_order(g.current_user, shipping)
    return jsonify(
        message="Order placed successfully",
        success=True,
        data={"order": {
            "id": order.id,
            "order_number": order.order_number,
            "total_amount": float(order.total_amount),
            "status": order.status.value,
            "payment_method": order.payment_method.value,
            "items": [item.to_dict() for item in order.items],
        }}
    ), 201


@orders_bp.route('/my-orders', methods=['GET'])
@customer_required
def get_my_orders():
    orders = (Order.query
              .filter_by(user_id=g.current_user.id)
              .order_by(Order.created_at.desc(), Order.id.desc())
              .all())
    return jsonify(success=True, data={"orders": [o.to_dict() for o in orders]}), 200


@orders_bp.route('/<int:order_id>', methods=['GET'])
@customer_required
def get_order(order_id):
    order = _get_visible_order(order_id)
    if not order:
        return jsonify(message="Order not found", success=False), 404
    return jsonify(success=True, data={"order": order.to_dict(include_customer=True)}), 200


@orders_bp.route('/<int:order_id>/whatsapp', methods=['GET'])
@customer_required
def get_whatsapp_message(order_id):
    order = _get_visible_order(order_id)
    if not order:
        return jsonify(message="Order not found", success=False), 404
    message = build_order_message(order)
    return jsonify(success=True, data={"message": message, "url": build_whatsapp_link(message)}), 200
