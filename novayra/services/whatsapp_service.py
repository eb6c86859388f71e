# novayra/services/whatsapp_service.py
from urllib.parse import quote

from flask import current_app

from ..utils import format_datetime_for_display


def format_amount(amount):
    """Thousands separators, no trailing .00 for whole amounts."""
    value = float(amount)
    if value == int(value):
        return f"{int(value):,}"
    return f"{value:,.2f}"


def build_order_message(order):
    """Plain-text order summary in the shape the WhatsApp business line expects."""
    symbol = current_app.config.get('CURRENCY_SYMBOL', '₹')
    user = order.user
    lines = [
        "🛒 *NOVAYRA PERFUME ORDER*",
        "",
        "👤 *Customer Details:*",
        f"Name: {user.full_name if user else ''}",
        f"Phone: {(user.phone if user else None) or ''}",
        f"Address: {order.shipping_address}",
        f"City: {order.shipping_city}",
        f"State: {order.shipping_state}",
        f"Pincode: {order.shipping_postal_code}",
        f"Payment: {order.payment_method.value.upper()}",
        "",
        "📦 *Order Items:*",
    ]
    for item in order.items:
        lines.append(f"• {item.product_name} x{item.quantity} - {symbol}{format_amount(item.subtotal)}")
    lines += [
        "",
        f"💰 *Total: {symbol}{format_amount(order.total_amount)}*",
        "",
        f"🧾 *Order Number:* {order.order_number}",
        f"⏰ *Order Time:* {format_datetime_for_display(order.created_at)}",
        "",
        "Please confirm this order and provide payment details if required. Thank you! 🙏",
    ]
    return "\n".join(lines)


def build_whatsapp_link(message):
    number = current_app.config.get('WHATSAPP_BUSINESS_NUMBER', '917385183328')
    return f"https://wa.me/{number}?text={quote(message)}"
