# novayra/profile/routes.py
# Checkout profile: the shipping details a customer can keep on file.
import re

from flask import Blueprint, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..models import db
from ..errors import ValidationError
from ..utils import (
    get_json_payload, require_text, sanitize_input, customer_required,
    INDIAN_MOBILE_REGEX, PINCODE_REGEX
)

profile_bp = Blueprint('profile_bp', __name__, url_prefix='/api/profile')

REQUIRED_PROFILE_FIELDS = ['full_name', 'phone', 'address', 'city', 'state', 'pincode']


def _apply_checkout_fields(user, data):
    missing = [field for field in REQUIRED_PROFILE_FIELDS if not sanitize_input(data.get(field))]
    if missing:
        raise ValidationError("Missing required fields", errors={"required": REQUIRED_PROFILE_FIELDS, "missing": missing})

    full_name = require_text(data, 'full_name', label='Full name', max_length=200)
    phone = sanitize_input(data.get('phone'))
    pincode = sanitize_input(data.get('pincode'))
    if not re.match(INDIAN_MOBILE_REGEX, phone):
        raise ValidationError("Please enter a valid 10-digit phone number")
    if not re.match(PINCODE_REGEX, pincode):
        raise ValidationError("Please enter a valid 6-digit pincode")

    name_parts = full_name.split()
    user.first_name = name_parts[0]
    # A single word only replaces the first name.
    if len(name_parts) > 1:
        user.last_name = ' '.join(name_parts[1:])
    user.phone = phone
    user.address = require_text(data, 'address', label='Address')
    user.city = require_text(data, 'city', label='City', max_length=100)
    user.state = require_text(data, 'state', label='State', max_length=100)
    user.postal_code = pincode
    user.country = sanitize_input(data.get('country'), max_length=100) or 'India'


@profile_bp.route('/profile', methods=['GET'])
@customer_required
def get_checkout_profile():
    return jsonify(success=True, profile=g.current_user.to_checkout_profile()), 200


@profile_bp.route('/profile', methods=['PUT'])
@customer_required
def update_checkout_profile():
    user = g.current_user
    _apply_checkout_fields(user, get_json_payload())
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating checkout profile of user {user.id}: {e}", exc_info=True)
        return jsonify(message="Failed to update profile", success=False), 500
    return jsonify(message="Profile updated successfully", success=True, profile=user.to_checkout_profile()), 200


@profile_bp.route('/save-checkout-data', methods=['POST'])
@customer_required
def save_checkout_data():
    user = g.current_user
    _apply_checkout_fields(user, get_json_payload())
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving checkout data of user {user.id}: {e}", exc_info=True)
        return jsonify(message="Failed to save checkout data", success=False), 500
    return jsonify(message="Checkout data saved to profile successfully", success=True, saved=True), 200
