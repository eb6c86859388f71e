# novayra/cart/routes.py
from flask import Blueprint, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..models import db
from ..services.cart_service import CartService, MIN_LINE_QUANTITY, MAX_LINE_QUANTITY
from ..utils import get_json_payload, parse_int, customer_required

cart_bp = Blueprint('cart_bp', __name__, url_prefix='/api/cart')


def _quantity_from(data, default=None):
    value = data.get('quantity', default)
    return parse_int(value, 'Quantity', min_value=MIN_LINE_QUANTITY, max_value=MAX_LINE_QUANTITY)


@cart_bp.route('', methods=['GET'])
@customer_required
def get_cart():
    return jsonify(success=True, data=CartService.get_cart(g.current_user)), 200


@cart_bp.route('/summary', methods=['GET'])
@customer_required
def get_cart_summary():
    return jsonify(success=True, data=CartService.get_summary(g.current_user)), 200


@cart_bp.route('/add', methods=['POST'])
@customer_required
def add_to_cart():
    data = get_json_payload()
    product_id = parse_int(data.get('product_id'), 'Product ID', min_value=1)
    quantity = _quantity_from(data, default=1)
    try:
        line, created = CartService.add_item(g.current_user, product_id, quantity)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding product {product_id} to cart of user {g.current_user.id}: {e}", exc_info=True)
        return jsonify(message="Failed to add item to cart", success=False), 500

    if created:
        return jsonify(message="Item added to cart successfully", success=True, data={"item": line.to_dict()}), 201
    return jsonify(message="Cart updated successfully", success=True, data={"item": line.to_dict()}), 200


@cart_bp.route('/update/<int:item_id>', methods=['PUT'])
@customer_required
def update_cart_item(item_id):
    quantity = _quantity_from(get_json_payload())
    try:
        line = CartService.update_item(g.current_user, item_id, quantity)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating cart item {item_id}: {e}", exc_info=True)
        return jsonify(message="Failed to update cart item", success=False), 500
    return jsonify(message="Cart item updated successfully", success=True, data={"item": line.to_dict()}), 200


@cart_bp.route('/remove/<int:item_id>', methods=['DELETE'])
@customer_required
def remove_cart_item(item_id):
    try:
        CartService.remove_item(g.current_user, item_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error removing cart item {item_id}: {e}", exc_info=True)
        return jsonify(message="Failed to remove cart item", success=False), 500
    return jsonify(message="Item removed from cart successfully", success=True), 200


@cart_bp.route('/clear', methods=['DELETE'])
@customer_required
def clear_cart():
    try:
        removed = CartService.clear(g.current_user)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error clearing cart of user {g.current_user.id}: {e}", exc_info=True)
        return jsonify(message="Failed to clear cart", success=False), 500
    return jsonify(message="Cart cleared successfully", success=True, data={"removed_items": removed}), 200
