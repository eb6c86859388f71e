# novayra/services/cart_service.py
from decimal import Decimal

from flask import current_app

from ..models import db, CartItem, Product
from ..errors import ConflictError, NotFoundError, ValidationError

MIN_LINE_QUANTITY = 1
MAX_LINE_QUANTITY = 10


class CartService:
    """Per-user cart lines. Reads only see lines whose product is still active."""

    @staticmethod
    def _active_lines(user):
        return (CartItem.query
                .join(Product, CartItem.product_id == Product.id)
                .filter(CartItem.user_id == user.id, Product.is_active.is_(True))
                .order_by(CartItem.created_at.desc(), CartItem.id.desc()))

    @staticmethod
    def summarize(lines):
        total_items = sum(line.quantity for line in lines)
        total_amount = sum((line.product.price * line.quantity for line in lines), Decimal('0'))
        return {
            "total_items": total_items,
            "total_amount": round(float(total_amount), 2),
        }

    @staticmethod
    def get_cart(user):
        lines = CartService._active_lines(user).all()
        return {
            "items": [line.to_dict() for line in lines],
            "summary": CartService.summarize(lines),
        }

    @staticmethod
    def get_summary(user):
        return CartService.summarize(CartService._active_lines(user).all())

    @staticmethod
    def add_item(user, product_id, quantity):
        """
        Adds a product or bumps the quantity of an existing line.
        Returns (line, created).
        """
        product = Product.query.filter_by(id=product_id, is_active=True).first()
        if not product:
            raise NotFoundError("Product not found")

        line = CartItem.query.filter_by(user_id=user.id, product_id=product.id).first()
        new_quantity = quantity + (line.quantity if line else 0)
        if new_quantity > MAX_LINE_QUANTITY:
            raise ValidationError(f"A cart line can hold at most {MAX_LINE_QUANTITY} items")
        if new_quantity > product.stock_quantity:
            raise ConflictError(f"Only {product.stock_quantity} items available in stock")

        created = line is None
        if created:
            line = CartItem(user_id=user.id, product_id=product.id, quantity=quantity)
            db.session.add(line)
        else:
            line.quantity = new_quantity
        db.session.commit()
        current_app.logger.debug(f"Cart line {line.id} for user {user.id} now holds {line.quantity} x product {product.id}")
        return line, created

    @staticmethod
    def _get_own_line(user, item_id):
        line = (CartItem.query
                .join(Product, CartItem.product_id == Product.id)
                .filter(CartItem.id == item_id, CartItem.user_id == user.id, Product.is_active.is_(True))
                .first())
        if not line:
            raise NotFoundError("Cart item not found")
        return line

    @staticmethod
    def update_item(user, item_id, quantity):
        line = CartService._get_own_line(user, item_id)
        if quantity > line.product.stock_quantity:
            raise ConflictError(f"Only {line.product.stock_quantity} items available in stock")
        line.quantity = quantity
        db.session.commit()
        return line

    @staticmethod
    def remove_item(user, item_id):
        line = CartItem.query.filter_by(id=item_id, user_id=user.id).first()
        if not line:
            raise NotFoundError("Cart item not found")
        db.session.delete(line)
        db.session.commit()

    @staticmethod
    def clear(user):
        removed = CartItem.query.filter_by(user_id=user.id).delete(synchronize_session=False)
        db.session.commit()
        return removed
