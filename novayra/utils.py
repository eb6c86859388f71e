# novayra/utils.py
import re
from decimal import Decimal, InvalidOperation
from functools import wraps

from flask import current_app, g, request

from .errors import ValidationError, ForbiddenError
from .auth.principals import customer_tokens, admin_sessions

EMAIL_REGEX = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
INDIAN_MOBILE_REGEX = r'^[6-9]\d{9}$'
PINCODE_REGEX = r'^\d{6}$'
PHONE_REGEX = r'^\+?[0-9\s\-()]{7,20}$'


# --- Sanitization Helper ---
def sanitize_input(value, allow_html=False, max_length=None):
    """
    Basic input sanitizer.
    - Strips leading/trailing whitespace.
    - Optionally removes HTML tags.
    - Optionally truncates to max_length.
    """
    if value is None:
        return None

    value_str = str(value).strip()

    if not allow_html:
        value_str = re.sub(r'<[^>]*>', '', value_str)

    if max_length is not None and len(value_str) > max_length:
        value_str = value_str[:max_length]

    return value_str


def is_valid_email(email):
    if not email:
        return False
    return re.match(EMAIL_REGEX, email) is not None


def is_valid_phone(phone):
    if not phone:
        return False
    return re.match(PHONE_REGEX, phone) is not None


def normalize_email(email):
    return sanitize_input(email).lower() if email else email


# --- Request payload helpers ---
def get_json_payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def require_text(data, field, label=None, min_length=1, max_length=None, allow_html=False):
    """Returns the sanitized value of a required text field or raises ValidationError."""
    label = label or field.replace('_', ' ').capitalize()
    value = sanitize_input(data.get(field), allow_html=allow_html)
    if not value:
        raise ValidationError(f"{label} is required")
    if len(value) < min_length:
        raise ValidationError(f"{label} must be at least {min_length} characters")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{label} must be at most {max_length} characters")
    return value


def optional_text(data, field, max_length=None, allow_html=False):
    value = sanitize_input(data.get(field), allow_html=allow_html, max_length=max_length)
    return value or None


def parse_int(value, label, min_value=None, max_value=None):
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{label} must be an integer")
    if min_value is not None and max_value is not None and not (min_value <= number <= max_value):
        raise ValidationError(f"{label} must be between {min_value} and {max_value}")
    if min_value is not None and number < min_value:
        raise ValidationError(f"{label} must be at least {min_value}")
    if max_value is not None and number > max_value:
        raise ValidationError(f"{label} must be at most {max_value}")
    return number


def parse_price(value, label="Price"):
    """Parses a strictly positive monetary amount with two decimal places."""
    try:
        price = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{label} must be a valid number")
    if not price.is_finite() or price <= 0:
        raise ValidationError(f"{label} must be greater than 0")
    return price


def parse_bool(value, default=False):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def get_page_args(default_per_page=10, max_per_page=100):
    page = request.args.get('page', 1, type=int) or 1
    per_page = request.args.get('limit', default_per_page, type=int) or default_per_page
    return max(page, 1), min(max(per_page, 1), max_per_page)


def pagination_dict(pagination):
    return {
        "page": pagination.page,
        "limit": pagination.per_page,
        "total": pagination.total,
        "pages": pagination.pages,
    }


# --- Authentication decorators ---
def customer_required(fn):
    """Requires a valid customer bearer token; the user is available as g.current_user."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        principal = customer_tokens.resolve()
        g.principal = principal
        g.current_user = principal.user
        return fn(*args, **kwargs)
    return wrapper


def optional_customer(fn):
    """Like customer_required, but a missing or bad token leaves g.current_user as None."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        principal = customer_tokens.resolve(optional=True)
        g.principal = principal
        g.current_user = principal.user if principal else None
        return fn(*args, **kwargs)
    return wrapper


def jwt_admin_required(fn):
    """Customer bearer token whose user carries the is_admin flag."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        principal = customer_tokens.resolve()
        if not principal.is_admin:
            current_app.logger.warning(f"Admin access denied for {request.path}: user {principal.user.id} is not an admin.")
            raise ForbiddenError("Admin access required")
        g.principal = principal
        g.current_user = principal.user
        return fn(*args, **kwargs)
    return wrapper


def admin_required(fn):
    """Requires a live admin session token; sets g.current_admin and g.admin_session."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        principal = admin_sessions.resolve()
        g.principal = principal
        g.current_admin = principal.user
        g.admin_session = principal.session
        return fn(*args, **kwargs)
    return wrapper


# --- Files ---
def allowed_file(filename, allowed_extensions_config_key='PRODUCT_IMAGE_EXTENSIONS'):
    allowed_extensions = current_app.config.get(allowed_extensions_config_key, {'png', 'jpg', 'jpeg'})
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions


def get_file_extension(filename):
    if '.' in filename: return filename.rsplit('.', 1)[1].lower()
    return ''


# --- Dates ---
def format_datetime_for_display(dt_obj, fmt='%Y-%m-%d %H:%M:%S'):
    if not dt_obj: return None
    return dt_obj.strftime(fmt)
