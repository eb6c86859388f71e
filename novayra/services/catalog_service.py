# novayra/services/catalog_service.py
import os
import time
import uuid

from flask import current_app
from werkzeug.utils import secure_filename
from sqlalchemy.exc import SQLAlchemyError

from ..models import db, Product, ProductImage
from ..errors import ValidationError
from ..utils import (
    sanitize_input, require_text, optional_text, parse_int, parse_price,
    parse_bool, allowed_file, get_file_extension
)

LOW_STOCK_STATUSES = ('in_stock', 'out_of_stock', 'low_stock')


def parse_product_fields(data, partial=False):
    """
    Validates product input from JSON or multipart form data.
    With partial=True only the fields present are validated and returned.
    """
    fields = {}
    if not partial or 'name' in data:
        fields['name'] = require_text(data, 'name', label='Product name', max_length=255)
    if not partial or 'price' in data:
        fields['price'] = parse_price(data.get('price'))
    if not partial or 'stock_quantity' in data:
        fields['stock_quantity'] = parse_int(data.get('stock_quantity', 0), 'Stock quantity', min_value=0)
    if 'description' in data:
        fields['description'] = optional_text(data, 'description')
    if 'fragrance_notes' in data:
        fields['fragrance_notes'] = optional_text(data, 'fragrance_notes')
    if 'bottle_size' in data:
        fields['bottle_size'] = optional_text(data, 'bottle_size', max_length=50)
    if 'image_url' in data:
        fields['image_url'] = optional_text(data, 'image_url', max_length=500)
    if 'category' in data or not partial:
        fields['category'] = sanitize_input(data.get('category'), max_length=100) or 'perfume'
    if 'is_active' in data:
        fields['is_active'] = parse_bool(data.get('is_active'), default=True)
    return fields


class ProductImageStorage:
    """Stores uploaded product images under UPLOAD_FOLDER/products and serves them from /uploads/products."""

    @staticmethod
    def _folder():
        folder = os.path.join(current_app.config['UPLOAD_FOLDER'], 'products')
        os.makedirs(folder, exist_ok=True)
        return folder

    @staticmethod
    def validate(file_storage):
        if not file_storage or not file_storage.filename:
            raise ValidationError("No image file provided")
        if not allowed_file(file_storage.filename):
            raise ValidationError("Only image files are allowed (jpeg, jpg, png, webp, svg)")
        file_storage.stream.seek(0, os.SEEK_END)
        size = file_storage.stream.tell()
        file_storage.stream.seek(0)
        if size > current_app.config.get('MAX_PRODUCT_IMAGE_SIZE', 5 * 1024 * 1024):
            raise ValidationError("Image file is too large (max 5MB)")

    @staticmethod
    def save(file_storage):
        ProductImageStorage.validate(file_storage)
        extension = get_file_extension(secure_filename(file_storage.filename)) or get_file_extension(file_storage.filename)
        filename = f"product-{int(time.time() * 1000)}-{uuid.uuid4().hex[:10]}.{extension}"
        file_storage.save(os.path.join(ProductImageStorage._folder(), filename))
        current_app.logger.info(f"Product image saved: {filename}")
        return f"{current_app.config.get('UPLOAD_URL_PREFIX', '/uploads')}/products/{filename}"

    @staticmethod
    def delete(image_url):
        """Best-effort removal of a previously uploaded file; failures are logged only."""
        prefix = f"{current_app.config.get('UPLOAD_URL_PREFIX', '/uploads')}/products/"
        if not image_url or not image_url.startswith(prefix):
            return False
        filename = secure_filename(image_url[len(prefix):])
        if not filename:
            return False
        path = os.path.join(ProductImageStorage._folder(), filename)
        try:
            os.remove(path)
            return True
        except OSError as e:
            current_app.logger.warning(f"Could not delete product image {path}: {e}")
            return False


class CatalogService:

    @staticmethod
    def create_product(fields):
        product = Product(**fields)
        db.session.add(product)
        db.session.commit()
        return product

    @staticmethod
    def update_product(product, fields):
        """Applies fields and returns {field: {old, new}} for the values that changed."""
        changes = {}
        for key, value in fields.items():
            old = getattr(product, key)
            if old != value:
                changes[key] = {
                    "old": float(old) if key == 'price' and old is not None else old,
                    "new": float(value) if key == 'price' and value is not None else value,
                }
                setattr(product, key, value)
        db.session.commit()
        return changes

    @staticmethod
    def has_orders(product):
        return product.order_items.first() is not None

    @staticmethod
    def delete_product(product):
        """
        Hard-deletes a product that was never ordered, together with its images.
        Ordered products are only deactivated so order history keeps its reference.
        Returns True when the row was removed.
        """
        if CatalogService.has_orders(product):
            product.is_active = False
            db.session.commit()
            return False

        image_urls = [product.image_url] + [img.image_url for img in product.images]
        db.session.delete(product)
        db.session.commit()
        for url in image_urls:
            ProductImageStorage.delete(url)
        return True

    @staticmethod
    def add_images(product, files):
        max_files = current_app.config.get('MAX_PRODUCT_IMAGES_PER_UPLOAD', 5)
        if not files:
            raise ValidationError("No images uploaded")
        if len(files) > max_files:
            raise ValidationError(f"At most {max_files} images can be uploaded at once")
        for file_storage in files:
            ProductImageStorage.validate(file_storage)

        next_order = product.images.count()
        has_primary = product.images.filter_by(is_primary=True).first() is not None
        images, saved_urls = [], []
        try:
            for offset, file_storage in enumerate(files):
                url = ProductImageStorage.save(file_storage)
                saved_urls.append(url)
                image = ProductImage(
                    product_id=product.id,
                    image_url=url,
                    alt_text=product.name,
                    is_primary=not has_primary and offset == 0,
                    sort_order=next_order + offset
                )
                db.session.add(image)
                images.append(image)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            for url in saved_urls:
                ProductImageStorage.delete(url)
            raise
        return images

    @staticmethod
    def validate_stock_status(stock_status):
        if stock_status and stock_status not in LOW_STOCK_STATUSES:
            raise ValidationError(f"stock_status must be one of: {', '.join(LOW_STOCK_STATUSES)}")
        return stock_status or None
