# novayra/contact/routes.py
from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..models import db, ContactMessage, ContactStatusEnum
from ..utils import get_json_payload, require_text, normalize_email, is_valid_email

contact_bp = Blueprint('contact_bp', __name__, url_prefix='/api/contact')


@contact_bp.route('/submit', methods=['POST'])
def submit_contact_message():
    data = get_json_payload()
    name = require_text(data, 'name', label='Name', min_length=2, max_length=100)
    email = normalize_email(data.get('email'))
    phone = require_text(data, 'phone', label='Phone number', min_length=10, max_length=15)
    subject = require_text(data, 'subject', label='Subject', min_length=1, max_length=50)
    message = require_text(data, 'message', label='Message', min_length=10, max_length=1000)

    if not is_valid_email(email):
        return jsonify(message="Please provide a valid email address", success=False), 400

    try:
        contact_message = ContactMessage(
            name=name, email=email, phone=phone, subject=subject,
            message=message, status=ContactStatusEnum.NEW
        )
        db.session.add(contact_message)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving contact message from {email}: {e}", exc_info=True)
        return jsonify(message="Internal server error. Please try again later.", success=False), 500

    current_app.logger.info(f"New contact form submission from {name} ({email}) - Subject: {subject}")
    return jsonify(
        message="Contact message submitted successfully",
        success=True,
        data={"id": contact_message.id, "name": name, "email": email, "subject": subject}
    ), 201
