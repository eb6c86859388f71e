# novayra/admin_api/product_routes.py
from flask import request, jsonify, current_app
from sqlalchemy import func, case, or_
from sqlalchemy.exc import SQLAlchemyError

from . import admin_api_bp
from ..errors import ValidationError
from ..models import db, Product
from ..services.catalog_service import CatalogService, ProductImageStorage, parse_product_fields
from ..utils import admin_required, sanitize_input, get_page_args, pagination_dict

# Admin forms post camelCase field names.
FORM_FIELD_ALIASES = {
    'stockQuantity': 'stock_quantity',
    'fragranceNotes': 'fragrance_notes',
    'bottleSize': 'bottle_size',
    'isActive': 'is_active',
    'imageUrl': 'image_url',
}


def _product_form_data():
    if request.is_json:
        raw = request.get_json(silent=True)
        if not isinstance(raw, dict):
            raise ValidationError("Invalid JSON payload")
    else:
        raw = request.form.to_dict()
    return {FORM_FIELD_ALIASES.get(key, key): value for key, value in raw.items()}


def _parse_price_arg(name):
    value = request.args.get(name)
    if value in (None, ''):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def _get_product_or_404(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return None, (jsonify(message="Product not found", success=False), 404)
    return product, None


@admin_api_bp.route('/products', methods=['GET'])
@admin_required
def admin_get_products():
    page, per_page = get_page_args(default_per_page=20)
    search = sanitize_input(request.args.get('search'), max_length=100)
    category = sanitize_input(request.args.get('category'), max_length=100)
    min_price = _parse_price_arg('min_price') if 'min_price' in request.args else _parse_price_arg('minPrice')
    max_price = _parse_price_arg('max_price') if 'max_price' in request.args else _parse_price_arg('maxPrice')
    stock_status = CatalogService.validate_stock_status(
        request.args.get('stock_status') or request.args.get('stockStatus')
    )
    threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)

    query = Product.query
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Product.name.ilike(pattern),
            Product.description.ilike(pattern),
            Product.fragrance_notes.ilike(pattern),
        ))
    if category:
        query = query.filter(Product.category == category)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if stock_status == 'in_stock':
        query = query.filter(Product.stock_quantity > 0)
    elif stock_status == 'out_of_stock':
        query = query.filter(Product.stock_quantity == 0)
    elif stock_status == 'low_stock':
        query = query.filter(Product.stock_quantity > 0, Product.stock_quantity <= threshold)

    pagination = query.order_by(Product.created_at.desc(), Product.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )
    categories = [c for (c,) in (db.session.query(Product.category)
                                 .filter(Product.category.isnot(None), Product.category != '')
                                 .distinct()
                                 .order_by(Product.category))]
    return jsonify(
        products=[p.to_dict() for p in pagination.items],
        categories=categories,
        pagination=pagination_dict(pagination),
        success=True
    ), 200


@admin_api_bp.route('/products/<int:product_id>', methods=['GET'])
@admin_required
def admin_get_product(product_id):
    product, error = _get_product_or_404(product_id)
    if error:
        return error
    return jsonify(product=product.to_dict(include_images=True), success=True), 200


@admin_api_bp.route('/products', methods=['POST'])
@admin_required
def admin_create_product():
    fields = parse_product_fields(_product_form_data())
    image_file = request.files.get('image')
    if image_file and image_file.filename:
        ProductImageStorage.validate(image_file)
        fields['image_url'] = ProductImageStorage.save(image_file)

    try:
        product = CatalogService.create_product(fields)
    except SQLAlchemyError as e:
        db.session.rollback()
        ProductImageStorage.delete(fields.get('image_url'))
        current_app.logger.error(f"Error creating product '{fields.get('name')}': {e}", exc_info=True)
        return jsonify(message="Failed to create product", success=False), 500

    current_app.activity_log_service.log_admin_action('CREATE_PRODUCT', 'products', product.id, {
        "name": product.name,
        "price": float(product.price),
        "stock_quantity": product.stock_quantity,
        "category": product.category,
    })
    return jsonify(message="Product created successfully", product=product.to_dict(), success=True), 201


@admin_api_bp.route('/products/<int:product_id>', methods=['PUT'])
@admin_required
def admin_update_product(product_id):
    product, error = _get_product_or_404(product_id)
    if error:
        return error

    fields = parse_product_fields(_product_form_data(), partial=True)
    old_image_url = product.image_url
    image_file = request.files.get('image')
    if image_file and image_file.filename:
        ProductImageStorage.validate(image_file)
        fields['image_url'] = ProductImageStorage.save(image_file)

    try:
        changes = CatalogService.update_product(product, fields)
    except SQLAlchemyError as e:
        db.session.rollback()
        if image_file and image_file.filename:
            ProductImageStorage.delete(fields.get('image_url'))
        current_app.logger.error(f"Error updating product {product_id}: {e}", exc_info=True)
        return jsonify(message="Failed to update product", success=False), 500

    if 'image_url' in changes and old_image_url:
        ProductImageStorage.delete(old_image_url)

    current_app.activity_log_service.log_admin_action('UPDATE_PRODUCT', 'products', product.id, {
        "name": product.name,
        "changes": changes,
    })
    return jsonify(message="Product updated successfully", product=product.to_dict(), success=True), 200


@admin_api_bp.route('/products/<int:product_id>', methods=['DELETE'])
@admin_required
def admin_delete_product(product_id):
    product, error = _get_product_or_404(product_id)
    if error:
        return error

    name = product.name
    try:
        removed = CatalogService.delete_product(product)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting product {product_id}: {e}", exc_info=True)
        return jsonify(message="Failed to delete product", success=False), 500

    if removed:
        current_app.activity_log_service.log_admin_action('DELETE_PRODUCT', 'products', product_id, {"name": name})
        return jsonify(message="Product deleted successfully", deleted=True, success=True), 200

    current_app.activity_log_service.log_admin_action('DEACTIVATE_PRODUCT', 'products', product_id, {
        "name": name,
        "reason": "product has been ordered",
    })
    return jsonify(
        message="Product has been ordered, so it was deactivated instead of deleted",
        deleted=False,
        success=True
    ), 200


@admin_api_bp.route('/products/<int:product_id>/images', methods=['POST'])
@admin_required
def admin_upload_product_images(product_id):
    product, error = _get_product_or_404(product_id)
    if error:
        return error

    files = [f for f in request.files.getlist('images') if f and f.filename]
    images = CatalogService.add_images(product, files)

    current_app.activity_log_service.log_admin_action('UPLOAD_PRODUCT_IMAGES', 'products', product.id, {
        "image_count": len(images),
        "image_urls": [img.image_url for img in images],
    })
    return jsonify(
        message="Images uploaded successfully",
        images=[img.to_dict() for img in images],
        success=True
    ), 201


@admin_api_bp.route('/products/stats/summary', methods=['GET'])
@admin_required
def admin_product_stats():
    threshold = current_app.config.get('LOW_STOCK_THRESHOLD', 10)
    row = db.session.query(
        func.count(Product.id),
        func.count(case((Product.stock_quantity > 0, 1))),
        func.count(case((Product.stock_quantity == 0, 1))),
        func.count(case(((Product.stock_quantity > 0) & (Product.stock_quantity <= threshold), 1))),
        func.count(case((Product.is_active.is_(True), 1))),
        func.avg(Product.price),
        func.coalesce(func.sum(Product.stock_quantity), 0),
    ).one()

    category_rows = (db.session.query(Product.category, func.count(Product.id), func.avg(Product.price))
                     .filter(Product.category.isnot(None), Product.category != '')
                     .group_by(Product.category)
                     .order_by(func.count(Product.id).desc())
                     .all())

    stats = {
        "total_products": row[0] or 0,
        "in_stock": row[1] or 0,
        "out_of_stock": row[2] or 0,
        "low_stock": row[3] or 0,
        "active_products": row[4] or 0,
        "avg_price": round(float(row[5]), 2) if row[5] is not None else 0,
        "total_stock": int(row[6] or 0),
    }
    categories = [{
        "category": category,
        "count": count,
        "avg_price": round(float(avg_price), 2) if avg_price is not None else 0,
    } for category, count, avg_price in category_rows]
    return jsonify(stats=stats, categories=categories, success=True), 200
