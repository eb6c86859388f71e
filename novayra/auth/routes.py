# novayra/auth/routes.py
from flask import Blueprint, request, jsonify, current_app, g
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import SQLAlchemyError

from ..models import db, User
from ..utils import (
    get_json_payload, require_text, sanitize_input, is_valid_email,
    is_valid_phone, normalize_email, customer_required
)

auth_bp = Blueprint('auth_bp', __name__, url_prefix='/api/auth')


def _issue_token(user):
    # Identity is the user id; the row is looked up again on every request.
    return create_access_token(identity=str(user.id))


@auth_bp.route('/register', methods=['POST'])
def register():
    data = get_json_payload()
    email = normalize_email(data.get('email'))
    password = data.get('password') or ''
    first_name = require_text(data, 'first_name', label='First name', min_length=2, max_length=100)
    last_name = require_text(data, 'last_name', label='Last name', min_length=2, max_length=100)
    phone = sanitize_input(data.get('phone')) or None

    if not is_valid_email(email):
        return jsonify(message="Please provide a valid email", success=False), 400
    if len(password) < 6:
        return jsonify(message="Password must be at least 6 characters long", success=False), 400
    if phone and not is_valid_phone(phone):
        return jsonify(message="Please provide a valid phone number", success=False), 400

    if User.query.filter_by(email=email).first():
        current_app.logger.info(f"Registration refused, email already in use: {email}")
        return jsonify(message="User with this email already exists", success=False), 400

    try:
        new_user = User(email=email, first_name=first_name, last_name=last_name, phone=phone)
        new_user.set_password(password)
        db.session.add(new_user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error during registration for {email}: {e}", exc_info=True)
        return jsonify(message="Registration failed due to a server error", success=False), 500

    current_app.logger.info(f"User {new_user.id} registered with email {email}.")
    return jsonify(
        message="User registered successfully",
        success=True,
        data={"user": new_user.to_dict(), "token": _issue_token(new_user)}
    ), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = get_json_payload()
    email = normalize_email(data.get('email'))
    password = data.get('password') or ''

    if not is_valid_email(email) or not password:
        return jsonify(message="Please provide a valid email and password", success=False), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        current_app.logger.warning(f"Failed login attempt for {email} from {request.remote_addr}")
        return jsonify(message="Invalid email or password", success=False), 401

    return jsonify(
        message="Login successful",
        success=True,
        data={"user": user.to_dict(), "token": _issue_token(user)}
    ), 200


@auth_bp.route('/profile', methods=['GET'])
@customer_required
def get_profile():
    return jsonify(success=True, data={"user": g.current_user.to_dict()}), 200


@auth_bp.route('/profile', methods=['PUT'])
@customer_required
def update_profile():
    user = g.current_user
    data = get_json_payload()

    if 'first_name' in data:
        user.first_name = require_text(data, 'first_name', label='First name', min_length=2, max_length=100)
    if 'last_name' in data:
        user.last_name = require_text(data, 'last_name', label='Last name', min_length=2, max_length=100)
    if 'phone' in data:
        phone = sanitize_input(data.get('phone')) or None
        if phone and not is_valid_phone(phone):
            return jsonify(message="Please provide a valid phone number", success=False), 400
        user.phone = phone

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error updating profile of user {user.id}: {e}", exc_info=True)
        return jsonify(message="Failed to update profile", success=False), 500

    return jsonify(message="Profile updated successfully", success=True, data={"user": user.to_dict()}), 200
