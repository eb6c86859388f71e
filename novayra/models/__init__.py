# novayra/models/__init__.py
from .base import db
from .enums import (
    OrderStatusEnum, PaymentStatusEnum, PaymentMethodEnum, SampleSizeEnum,
    SampleStatusEnum, ContactStatusEnum, SettingTypeEnum
)
from .user_models import User, AdminSession
from .product_models import Product, ProductImage
from .cart_models import CartItem
from .order_models import Order, OrderItem
from .utility_models import SampleRequest, ContactMessage, AdminActivityLog, SiteSetting, DashboardStat
