# novayra/models/cart_models.py
from .base import db
from datetime import datetime, timezone


class CartItem(db.Model):
    __tablename__ = 'cart_items'
    __table_args__ = (db.UniqueConstraint('user_id', 'product_id', name='uq_cart_user_product'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    user = db.relationship('User', back_populates='cart_items')
    product = db.relationship('Product', back_populates='cart_items')

    @property
    def subtotal(self):
        return self.product.price * self.quantity

    def to_dict(self):
        product = self.product
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "name": product.name,
            "price": float(product.price),
            "image_url": product.image_url,
            "stock_quantity": product.stock_quantity,
            "subtotal": round(float(self.subtotal), 2),
        }
