# novayra/config.py
import os
from datetime import timedelta
from dotenv import load_dotenv

# Determine the base directory of this config file (novayra/)
# and the project root (one level up from novayra/)
CONFIG_FILE_DIR = os.path.abspath(os.path.dirname(__file__))
PROJECT_ROOT = os.path.dirname(CONFIG_FILE_DIR)

# Load .env file from the PROJECT_ROOT if it exists
dotenv_path = os.path.join(PROJECT_ROOT, '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)

DEFAULT_SECRET_KEY = 'novayra-dev-secret-key-change-me'
DEFAULT_JWT_SECRET_KEY = 'novayra-secret-key'


def _database_uri(default_filename):
    """DATABASE_URL wins, then discrete DB_* settings for MySQL, then a local SQLite file."""
    if os.environ.get('DATABASE_URL'):
        return os.environ['DATABASE_URL']
    if os.environ.get('DB_NAME'):
        return "mysql+pymysql://{user}:{password}@{host}:{port}/{name}".format(
            user=os.environ.get('DB_USER', 'root'),
            password=os.environ.get('DB_PASSWORD', ''),
            host=os.environ.get('DB_HOST', 'localhost'),
            port=os.environ.get('DB_PORT', '3306'),
            name=os.environ['DB_NAME'],
        )
    return 'sqlite:///' + os.path.join(PROJECT_ROOT, 'instance', default_filename)


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY', DEFAULT_SECRET_KEY)
    DEBUG = False
    TESTING = False
    PORT = int(os.environ.get('PORT', 3000))

    SQLALCHEMY_DATABASE_URI = _database_uri('novayra.sqlite3')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}
    if SQLALCHEMY_DATABASE_URI.startswith('mysql'):
        SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True, 'pool_size': 10, 'pool_recycle': 280}

    # Customer tokens: bearer header only, fixed lifetime
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET', DEFAULT_JWT_SECRET_KEY)
    JWT_TOKEN_LOCATION = ['headers']
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)

    # Admin back-office sessions
    ADMIN_SESSION_LIFETIME = timedelta(hours=24)
    ADMIN_TOKEN_COOKIE_NAME = 'adminToken'
    ADMIN_COOKIE_SECURE = False

    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(PROJECT_ROOT, 'uploads'))
    UPLOAD_URL_PREFIX = '/uploads'
    PRODUCT_IMAGE_EXTENSIONS = {'jpeg', 'jpg', 'png', 'webp', 'svg'}
    MAX_PRODUCT_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
    MAX_PRODUCT_IMAGES_PER_UPLOAD = 5
    MAX_CONTENT_LENGTH = 30 * 1024 * 1024

    # SPA root: index.html plus scripts and styles
    STATIC_FOLDER = os.environ.get('STATIC_FOLDER', os.path.join(PROJECT_ROOT, 'public'))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    LOG_FILE = os.environ.get('LOG_FILE', None)

    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', "http://localhost:3000,http://127.0.0.1:3000")

    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', "memory://")
    RATELIMIT_STRATEGY = "fixed-window"
    RATELIMIT_HEADERS_ENABLED = True
    API_RATELIMIT = "100 per 15 minutes"
    AUTH_RATELIMITS = "20 per minute;200 per hour"
    ADMIN_LOGIN_RATELIMITS = "10 per 5 minutes;60 per hour"

    CONTENT_SECURITY_POLICY = {
        'default-src': ['\'self\''],
        'style-src': ['\'self\'', '\'unsafe-inline\'', 'https://fonts.googleapis.com', 'https://cdnjs.cloudflare.com'],
        'font-src': ['\'self\'', 'https://fonts.gstatic.com', 'https://cdnjs.cloudflare.com'],
        'img-src': ['\'self\'', 'data:', 'https:'],
        'script-src': ['\'self\'', '\'unsafe-inline\''],
        'connect-src': ['\'self\''],
        'frame-ancestors': ['\'none\'']
    }
    TALISMAN_FORCE_HTTPS = False

    INITIAL_ADMIN_EMAIL = os.environ.get('INITIAL_ADMIN_EMAIL')
    INITIAL_ADMIN_PASSWORD = os.environ.get('INITIAL_ADMIN_PASSWORD')

    LOW_STOCK_THRESHOLD = 10
    ORDER_NUMBER_MAX_ATTEMPTS = 3
    WHATSAPP_BUSINESS_NUMBER = os.environ.get('WHATSAPP_BUSINESS_NUMBER', '917385183328')
    CURRENCY_SYMBOL = '₹'

    API_VERSION = "1.0.0"


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = 'DEBUG'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or _database_uri('dev_novayra.sqlite3')


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL', 'sqlite:///:memory:')
    SQLALCHEMY_ENGINE_OPTIONS = {}
    TALISMAN_FORCE_HTTPS = False
    RATELIMIT_ENABLED = False  # Disable rate limits for testing
    INITIAL_ADMIN_EMAIL = 'admin@novayra.test'
    INITIAL_ADMIN_PASSWORD = 'admin-password-123'


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False
    TALISMAN_FORCE_HTTPS = True
    ADMIN_COOKIE_SECURE = True
    CORS_ORIGINS = os.environ.get('PROD_CORS_ORIGINS', Config.CORS_ORIGINS)


config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig,
    default=DevelopmentConfig
)


def get_config_by_name(config_name_str=None):
    """
    Retrieves a configuration instance by name.
    Creates necessary directories defined in the config.
    """
    if config_name_str is None:
        config_name_str = os.getenv('FLASK_ENV', 'default')

    SelectedConfigClass = config_by_name.get(config_name_str.lower())
    if not SelectedConfigClass:
        print(f"Warning: Config name '{config_name_str}' not found. Using default.")
        SelectedConfigClass = config_by_name['default']

    config_instance = SelectedConfigClass()

    if isinstance(config_instance, ProductionConfig):
        if config_instance.SECRET_KEY == DEFAULT_SECRET_KEY:
            raise ValueError("Production SECRET_KEY is not set or is using the default value.")
        if config_instance.JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY:
            raise ValueError("Production JWT_SECRET is not set or is using the default value.")
        if config_instance.RATELIMIT_STORAGE_URI == "memory://":
            print("WARNING: RATELIMIT_STORAGE_URI is 'memory://' for production. Consider Redis for scalability.")

    if config_instance.TESTING:
        return config_instance

    # --- Create directories defined in the config instance ---
    paths_to_create = [
        os.path.dirname(config_instance.SQLALCHEMY_DATABASE_URI.replace('sqlite:///', ''))
            if config_instance.SQLALCHEMY_DATABASE_URI.startswith('sqlite:///')
            and not config_instance.SQLALCHEMY_DATABASE_URI.endswith(':memory:')
            else None,
        os.path.join(config_instance.UPLOAD_FOLDER, 'products'),
        os.path.dirname(config_instance.LOG_FILE) if config_instance.LOG_FILE else None
    ]
    for path in paths_to_create:
        if path:
            try:
                os.makedirs(path, exist_ok=True)
            except OSError as e:
                print(f"Warning: Could not create directory {path}: {e}")

    return config_instance
