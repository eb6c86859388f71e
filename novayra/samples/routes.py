# novayra/samples/routes.py
from flask import Blueprint, jsonify, current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..models import db, Product, SampleRequest, SampleSizeEnum, SampleStatusEnum
from ..utils import (
    get_json_payload, require_text, parse_int, sanitize_input, is_valid_email,
    is_valid_phone, normalize_email, customer_required, optional_customer
)

samples_bp = Blueprint('samples_bp', __name__, url_prefix='/api/samples')

SAMPLE_SIZES = [s.value for s in SampleSizeEnum]
OPEN_SAMPLE_STATUSES = [SampleStatusEnum.PENDING, SampleStatusEnum.APPROVED]


@samples_bp.route('/request', methods=['POST'])
@optional_customer
def request_sample():
    data = get_json_payload()
    product_id = parse_int(data.get('product_id'), 'Product ID', min_value=1)
    customer_name = require_text(data, 'customer_name', label='Name', min_length=2, max_length=200)
    customer_email = normalize_email(data.get('customer_email'))
    customer_phone = sanitize_input(data.get('customer_phone')) or None
    sample_size = (data.get('sample_size') or '').strip().lower()
    shipping_address = require_text(data, 'shipping_address', label='Shipping address', min_length=10)
    shipping_city = require_text(data, 'shipping_city', label='City', min_length=2, max_length=100)
    shipping_state = require_text(data, 'shipping_state', label='State', min_length=2, max_length=100)
    shipping_postal_code = require_text(data, 'shipping_postal_code', label='Postal code', min_length=5, max_length=20)

    if not is_valid_email(customer_email):
        return jsonify(message="Please provide a valid email address", success=False), 400
    if customer_phone and not is_valid_phone(customer_phone):
        return jsonify(message="Please provide a valid phone number", success=False), 400
    if sample_size not in SAMPLE_SIZES:
        return jsonify(message=f"Sample size must be one of: {', '.join(SAMPLE_SIZES)}", success=False), 400

    product = Product.query.filter_by(id=product_id, is_active=True).first()
    if not product:
        return jsonify(message="Product not found or unavailable", success=False), 404

    user = g.current_user
    if user:
        already_requested = SampleRequest.query.filter(
            SampleRequest.user_id == user.id,
            SampleRequest.product_id == product.id,
            SampleRequest.status.in_(OPEN_SAMPLE_STATUSES)
        ).first()
        if already_requested:
            return jsonify(message="You have already requested a sample for this product", success=False), 400

    try:
        sample_request = SampleRequest(
            user_id=user.id if user else None,
            product_id=product.id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            sample_size=SampleSizeEnum(sample_size),
            shipping_address=shipping_address,
            shipping_city=shipping_city,
            shipping_state=shipping_state,
            shipping_postal_code=shipping_postal_code
        )
        db.session.add(sample_request)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error saving sample request for product {product_id}: {e}", exc_info=True)
        return jsonify(message="Internal server error", success=False), 500

    current_app.logger.info(f"Sample request {sample_request.id} for product {product.id} ({'user ' + str(user.id) if user else 'guest'}).")
    return jsonify(
        message="Sample request submitted successfully",
        success=True,
        data={"request_id": sample_request.id, "product_name": product.name}
    ), 201


@samples_bp.route('/my-requests', methods=['GET'])
@customer_required
def get_my_sample_requests():
    requests = (SampleRequest.query
                .filter_by(user_id=g.current_user.id)
                .order_by(SampleRequest.created_at.desc(), SampleRequest.id.desc())
                .all())
    return jsonify(success=True, data={"requests": [r.to_dict() for r in requests]}), 200
