# novayra/products/routes.py
from flask import Blueprint, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..models import db, Product
from ..services.catalog_service import CatalogService, parse_product_fields
from ..utils import get_json_payload, jwt_admin_required, sanitize_input

products_bp = Blueprint('products_bp', __name__, url_prefix='/api/products')


@products_bp.route('', methods=['GET'])
def list_products():
    products = Product.query.filter_by(is_active=True).order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify(success=True, data={"products": [p.to_dict() for p in products]}), 200


@products_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = Product.query.filter_by(id=product_id, is_active=True).first()
    if not product:
        return jsonify(message="Product not found", success=False), 404
    return jsonify(success=True, data={"product": product.to_dict(include_images=True)}), 200


@products_bp.route('/category/<string:category>', methods=['GET'])
def get_products_by_category(category):
    category = sanitize_input(category, max_length=100)
    products = (Product.query
                .filter_by(category=category, is_active=True)
                .order_by(Product.created_at.desc(), Product.id.desc())
                .all())
    return jsonify(success=True, data={"products": [p.to_dict() for p in products]}), 200


# --- Catalog writes for admin-flagged customer accounts ---

@products_bp.route('', methods=['POST'])
@jwt_admin_required
def create_product():
    fields = parse_product_fields(get_json_payload())
    try:
        product = CatalogService.create_product(fields)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating product: {e}", exc_info=True)
        return jsonify(message="Failed to create product", success=False), 500

    current_app.logger.info(f"Product {product.id} created by user {g.current_user.id}.")
    return jsonify(message="Product created successfully", success=True, data={"product": product.to_dict()}), 201


@products_bp.route('/<int:product_id>', methods=['PUT'])
@jwt_admin_required
def update_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify(message="Product not found", success=False), 404

    fields = parse_product_fields(get_json_payload(), partial=True)
    if not fields:
        return jsonify(message="No fields to update", success=False), 400
    try:
        CatalogService.update_product(product, fields)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating product {product_id}: {e}", exc_info=True)
        return jsonify(message="Failed to update product", success=False), 500

    return jsonify(message="Product updated successfully", success=True, data={"product": product.to_dict()}), 200


@products_bp.route('/<int:product_id>', methods=['DELETE'])
@jwt_admin_required
def deactivate_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify(message="Product not found", success=False), 404
    try:
        product.is_active = False
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deactivating product {product_id}: {e}", exc_info=True)
        return jsonify(message="Failed to delete product", success=False), 500

    return jsonify(message="Product deleted successfully", success=True), 200
