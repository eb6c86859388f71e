# novayra/models/product_models.py
from .base import db
from datetime import datetime, timezone


class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock_quantity = db.Column(db.Integer, default=0, nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    category = db.Column(db.String(100), default='perfume', nullable=False, index=True)
    fragrance_notes = db.Column(db.Text, nullable=True)
    bottle_size = db.Column(db.String(50), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    images = db.relationship('ProductImage', back_populates='product', lazy='dynamic',
                             cascade="all, delete-orphan", order_by='ProductImage.sort_order')
    cart_items = db.relationship('CartItem', back_populates='product', lazy='dynamic', cascade="all, delete-orphan")
    order_items = db.relationship('OrderItem', back_populates='product', lazy='dynamic')
    sample_requests = db.relationship('SampleRequest', back_populates='product', lazy='dynamic', cascade="all, delete-orphan")

    def to_dict(self, include_images=False):
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "stock_quantity": self.stock_quantity,
            "image_url": self.image_url,
            "category": self.category,
            "fragrance_notes": self.fragrance_notes,
            "bottle_size": self.bottle_size,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_images:
            data['images'] = [img.to_dict() for img in self.images]
        return data

    def __repr__(self):
        return f'<Product {self.name}>'


class ProductImage(db.Model):
    __tablename__ = 'product_images'
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    image_url = db.Column(db.String(500), nullable=False)
    alt_text = db.Column(db.String(255), nullable=True)
    is_primary = db.Column(db.Boolean, default=False)
    sort_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    product = db.relationship('Product', back_populates='images')

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "image_url": self.image_url,
            "alt_text": self.alt_text,
            "is_primary": self.is_primary,
            "sort_order": self.sort_order,
        }
