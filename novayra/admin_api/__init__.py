# novayra/admin_api/__init__.py
from flask import Blueprint

admin_api_bp = Blueprint('admin_api_bp', __name__, url_prefix='/api/admin')

# Import all the route modules to register their routes with the blueprint
from . import auth_routes
from . import dashboard_routes
from . import order_routes
from . import product_routes
from . import sample_routes
from . import contact_routes
from . import site_management_routes
