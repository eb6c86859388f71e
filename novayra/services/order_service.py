# novayra/services/order_service.py
import time
import uuid
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models import db, CartItem, Product, Order, OrderItem
from ..models import OrderStatusEnum, PaymentStatusEnum, PaymentMethodEnum
from ..errors import ValidationError, ConflictError, InternalError

ORDER_STATUS_FLOW = [
    OrderStatusEnum.PENDING,
    OrderStatusEnum.CONFIRMED,
    OrderStatusEnum.PROCESSING,
    OrderStatusEnum.SHIPPED,
    OrderStatusEnum.DELIVERED,
]
TERMINAL_ORDER_STATUSES = {OrderStatusEnum.DELIVERED, OrderStatusEnum.CANCELLED}

PAYMENT_STATUS_TRANSITIONS = {
    PaymentStatusEnum.PENDING: {PaymentStatusEnum.PAID, PaymentStatusEnum.FAILED},
    PaymentStatusEnum.FAILED: {PaymentStatusEnum.PENDING, PaymentStatusEnum.PAID},
    PaymentStatusEnum.PAID: {PaymentStatusEnum.REFUNDED},
    PaymentStatusEnum.REFUNDED: set(),
}


def can_transition_order(old_status, new_status):
    """Forward moves only (steps may be skipped); cancel from any non-terminal state."""
    if old_status == new_status:
        return True
    if old_status in TERMINAL_ORDER_STATUSES:
        return False
    if new_status == OrderStatusEnum.CANCELLED:
        return True
    return ORDER_STATUS_FLOW.index(new_status) > ORDER_STATUS_FLOW.index(old_status)


def can_transition_payment(old_status, new_status):
    return old_status == new_status or new_status in PAYMENT_STATUS_TRANSITIONS[old_status]


def generate_order_number():
    return f"NOV-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8].upper()}"


class OrderService:

    @staticmethod
    def _snapshot_cart(user):
        """Cart lines joined with the live product row, read at checkout time."""
        lines = (CartItem.query
                 .join(Product, CartItem.product_id == Product.id)
                 .filter(CartItem.user_id == user.id, Product.is_active.is_(True))
                 .order_by(CartItem.id)
                 .all())
        return [{
            "product_id": line.product.id,
            "name": line.product.name,
            "price": Decimal(str(line.product.price)),
            "stock_quantity": line.product.stock_quantity,
            "quantity": line.quantity,
        } for line in lines]

    @staticmethod
    def place_order(user, shipping):
        """
        Converts the user's cart into an order.

        Args:
            user (User): the authenticated customer.
            shipping (dict): shipping_address, shipping_city, shipping_state,
                shipping_postal_code, shipping_country, payment_method
                (PaymentMethodEnum) and notes.

        Returns:
            Order: the committed order with its items.

        Raises:
            ValidationError: the cart is empty.
            ConflictError: a line exceeds the stock available at placement time.
            InternalError: the write failed and was rolled back.
        """
        max_attempts = current_app.config.get('ORDER_NUMBER_MAX_ATTEMPTS', 3)
        for attempt in range(1, max_attempts + 1):
            order_number = generate_order_number()
            try:
                return OrderService._place_order_once(user, shipping, order_number)
            except IntegrityError as e:
                db.session.rollback()
                if 'order_number' in str(e.orig) and attempt < max_attempts:
                    current_app.logger.warning(f"Order number {order_number} already taken, retrying (attempt {attempt}).")
                    continue
                current_app.logger.error(f"Integrity error while placing order for user {user.id}: {e}", exc_info=True)
                raise InternalError("Failed to place order")
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Database error while placing order for user {user.id}: {e}", exc_info=True)
                raise InternalError("Failed to place order")
        raise InternalError("Failed to place order")

    @staticmethod
    def _place_order_once(user, shipping, order_number):
        lines = OrderService._snapshot_cart(user)
        if not lines:
            raise ValidationError("Cart is empty")

        for line in lines:
            if line['quantity'] > line['stock_quantity']:
                raise ConflictError(
                    f"Insufficient stock for {line['name']}. Only {line['stock_quantity']} available."
                )

        total_amount = sum((line['price'] * line['quantity'] for line in lines), Decimal('0'))

        order = Order(
            order_number=order_number,
            user_id=user.id,
            total_amount=total_amount,
            status=OrderStatusEnum.PENDING,
            payment_status=PaymentStatusEnum.PENDING,
            payment_method=shipping.get('payment_method', PaymentMethodEnum.COD),
            shipping_address=shipping['shipping_address'],
            shipping_city=shipping['shipping_city'],
            shipping_state=shipping['shipping_state'],
            shipping_postal_code=shipping['shipping_postal_code'],
            shipping_country=shipping.get('shipping_country') or 'India',
            notes=shipping.get('notes')
        )
        db.session.add(order)
        db.session.flush()

        for line in lines:
            order.items.append(OrderItem(
                product_id=line['product_id'],
                product_name=line['name'],
                product_price=line['price'],
                quantity=line['quantity'],
                subtotal=line['price'] * line['quantity']
            ))
            # Conditional decrement: a concurrent checkout that got there first leaves no row to update.
            updated = (db.session.query(Product)
                       .filter(Product.id == line['product_id'], Product.stock_quantity >= line['quantity'])
                       .update({Product.stock_quantity: Product.stock_quantity - line['quantity']},
                               synchronize_session=False))
            if updated != 1:
                db.session.rollback()
                available = db.session.query(Product.stock_quantity).filter(Product.id == line['product_id']).scalar() or 0
                current_app.logger.warning(f"Stock for product {line['product_id']} changed during checkout of user {user.id}.")
                raise ConflictError(f"Insufficient stock for {line['name']}. Only {available} available.")

        # Lines for deactivated products go too; the cart is empty after checkout.
        CartItem.query.filter_by(user_id=user.id).delete(synchronize_session=False)

        db.session.commit()
        current_app.logger.info(f"Order {order.order_number} placed by user {user.id} for {order.total_amount}.")
        return order

    @staticmethod
    def update_status(order, new_status, admin_notes=None, tracking_number=None):
        """Applies a validated status change and returns the change details for the activity log."""
        old_status = order.status
        if not can_transition_order(old_status, new_status):
            raise ConflictError(f"Cannot change order status from {old_status.value} to {new_status.value}")

        details = {
            "order_number": order.order_number,
            "old_status": old_status.value,
            "new_status": new_status.value,
        }
        order.status = new_status
        if admin_notes is not None:
            details['old_admin_notes'] = order.admin_notes
            details['admin_notes'] = admin_notes
            order.admin_notes = admin_notes
        if tracking_number is not None:
            details['old_tracking_number'] = order.tracking_number
            details['tracking_number'] = tracking_number
            order.tracking_number = tracking_number

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to update status of order {order.id}: {e}", exc_info=True)
            raise InternalError("Failed to update order status")
        return details

    @staticmethod
    def update_payment_status(order, new_status):
        old_status = order.payment_status
        if not can_transition_payment(old_status, new_status):
            raise ConflictError(f"Cannot change payment status from {old_status.value} to {new_status.value}")

        order.payment_status = new_status
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to update payment status of order {order.id}: {e}", exc_info=True)
            raise InternalError("Failed to update payment status")
        return {
            "order_number": order.order_number,
            "old_payment_status": old_status.value,
            "new_payment_status": new_status.value,
        }
