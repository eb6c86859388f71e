# novayra/models/enums.py
# Contains all Enum definitions for the models.
import enum


class OrderStatusEnum(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatusEnum(enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class PaymentMethodEnum(enum.Enum):
    COD = "cod"
    ONLINE = "online"
    CARD = "card"

class SampleSizeEnum(enum.Enum):
    ML_2 = "2ml"
    ML_5 = "5ml"
    ML_10 = "10ml"

class SampleStatusEnum(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    REJECTED = "rejected"

class ContactStatusEnum(enum.Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    CLOSED = "closed"

class SettingTypeEnum(enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"
