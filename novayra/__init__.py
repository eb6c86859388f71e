# novayra/__init__.py
import os
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

from flask import Flask, request, jsonify, send_from_directory
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_talisman import Talisman
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import NotFound
from sqlalchemy.exc import SQLAlchemyError

from .config import get_config_by_name
from .errors import ApiError
from .models import db
from .activity_log_service import ActivityLogService

# Initialize extensions without app object yet
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)
talisman = Talisman()

LOG_FORMAT = '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'


def _configure_logging(app):
    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO').upper(), logging.INFO)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE')
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir, exist_ok=True)
            handler = RotatingFileHandler(log_file, maxBytes=1024 * 1024 * 100, backupCount=20)
        else:
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.setLevel(log_level)
        if not app.logger.handlers: app.logger.addHandler(handler)
        app.logger.setLevel(log_level)
    elif app.debug:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        if not app.logger.handlers: app.logger.addHandler(stream_handler)
        app.logger.setLevel(logging.DEBUG)


def _register_jwt_callbacks():
    from .models import User

    @jwt.user_lookup_loader
    def load_user_from_token(_jwt_header, jwt_data):
        try:
            return db.session.get(User, int(jwt_data['sub']))
        except (TypeError, ValueError):
            return None

    @jwt.user_lookup_error_loader
    def user_lookup_error(_jwt_header, _jwt_data):
        return jsonify(message="Invalid token - user not found", success=False), 401

    @jwt.unauthorized_loader
    def missing_token(_reason):
        return jsonify(message="Access token required", success=False), 401

    @jwt.invalid_token_loader
    def invalid_token(_reason):
        return jsonify(message="Invalid or expired token", success=False), 401

    @jwt.expired_token_loader
    def expired_token(_jwt_header, _jwt_data):
        return jsonify(message="Invalid or expired token", success=False), 401


def _register_error_handlers(app):
    @app.errorhandler(ApiError)
    def api_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{request.method} {request.path} failed: {error.message}", exc_info=True)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        db.session.rollback()
        app.logger.error(f"Database error on {request.method} {request.path}: {error}", exc_info=True)
        return jsonify(message="Internal server error", success=False), 500

    def _description(error, fallback):
        return str(error.description) if getattr(error, 'description', None) else fallback

    @app.errorhandler(400)
    def bad_request_error(error): return jsonify(message=_description(error, "Bad Request"), success=False), 400
    @app.errorhandler(401)
    def unauthorized_error(error): return jsonify(message=_description(error, "Unauthorized"), success=False), 401
    @app.errorhandler(403)
    def forbidden_error(error): return jsonify(message=_description(error, "Forbidden"), success=False), 403
    @app.errorhandler(404)
    def not_found_error(error): return jsonify(message="Resource not found", success=False), 404
    @app.errorhandler(405)
    def method_not_allowed_error(error): return jsonify(message="Method not allowed", success=False), 405
    @app.errorhandler(413)
    def request_too_large_error(error): return jsonify(message="Uploaded file is too large", success=False), 413
    @app.errorhandler(429)
    def ratelimit_handler(e): return jsonify(message=f"Too many requests, please try again later. ({e.description})", success=False), 429
    @app.errorhandler(500)
    def internal_server_error(error):
        app.logger.error(f"Internal Server Error: {error}", exc_info=True)
        return jsonify(message="An internal server error occurred. Please try again later.", success=False), 500


def create_app(config_name=None, config_overrides=None):
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'default')

    app_config = get_config_by_name(config_name)

    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    # The SPA is served by the catch-all route below, not by Flask's static view.
    app = Flask(__name__,
                instance_path=os.path.join(project_root, 'instance'),
                static_folder=None)

    app.config.from_object(app_config)
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)
    app.logger.info(f"Novayra API starting with config: {config_name}")
    app.logger.info(f"Upload folder: {app.config['UPLOAD_FOLDER']}")

    # Initialize extensions with app object
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    talisman.init_app(
        app,
        content_security_policy=app.config.get('CONTENT_SECURITY_POLICY'),
        force_https=app.config.get('TALISMAN_FORCE_HTTPS', False),
        strict_transport_security=app.config.get('TALISMAN_FORCE_HTTPS', False),
        session_cookie_secure=app.config.get('ADMIN_COOKIE_SECURE', False),
        frame_options='DENY',
        referrer_policy='strict-origin-when-cross-origin',
    )

    CORS(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*").split(',')}},
         supports_credentials=True)
    app.logger.info(f"CORS configured for origins: {app.config.get('CORS_ORIGINS', '*')}")

    app.activity_log_service = ActivityLogService(app=app)

    # Import models here so Flask-Migrate can find them
    from . import models

    _register_jwt_callbacks()

    # Register Blueprints
    api_ratelimit = app.config.get('API_RATELIMIT', "100 per 15 minutes")

    from .auth.routes import auth_bp
    app.register_blueprint(auth_bp)
    limiter.limit(app.config.get('AUTH_RATELIMITS', "20 per minute"))(auth_bp)

    from .profile.routes import profile_bp
    from .products.routes import products_bp
    from .cart.routes import cart_bp
    from .orders.routes import orders_bp
    from .samples.routes import samples_bp
    from .contact.routes import contact_bp
    from .admin_api import admin_api_bp
    for blueprint in (profile_bp, products_bp, cart_bp, orders_bp, samples_bp, contact_bp, admin_api_bp):
        app.register_blueprint(blueprint)
        limiter.limit(api_ratelimit)(blueprint)

    app.logger.info("Blueprints registered.")

    @app.before_request
    def log_api_request():
        if request.path.startswith('/api/'):
            app.logger.debug(f"{request.method} {request.path}")

    @app.route('/api/health', methods=['GET'])
    @limiter.exempt
    def health_check():
        return jsonify(
            status="OK",
            success=True,
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=config_name,
            version=app.config.get("API_VERSION", "1.0.0")
        ), 200

    @app.route('/api', defaults={'path': ''}, methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
    @app.route('/api/<path:path>', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'])
    def api_not_found(path):
        return jsonify(message="API endpoint not found", success=False), 404

    @app.route(f"{app.config.get('UPLOAD_URL_PREFIX', '/uploads')}/<path:filename>")
    @limiter.exempt
    def serve_upload(filename):
        return send_from_directory(app.config['UPLOAD_FOLDER'], filename)

    @app.route('/', defaults={'path': ''})
    @app.route('/<path:path>')
    @limiter.exempt
    def spa_fallback(path):
        static_folder = app.config['STATIC_FOLDER']
        if path:
            try:
                return send_from_directory(static_folder, path)
            except NotFound:
                pass
        if os.path.isfile(os.path.join(static_folder, 'index.html')):
            return send_from_directory(static_folder, 'index.html')
        return jsonify(message="Resource not found", success=False), 404

    _register_error_handlers(app)

    from .database import register_db_commands
    register_db_commands(app)

    return app
