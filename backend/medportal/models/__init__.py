from medportal.models.user import User, UserRole
from medportal.models.patient import Patient
from medportal.models.product import Product
from medportal.models.order import Order, OrderItem, OrderStatus, OrderType
from medportal.models.payment import Payment, PaymentStatus
from medportal.models.pharmacy_log import PharmacyLog, PharmacyLogStatus

__all__ = [
    "User", "UserRole", "Patient", "Product",
    "Order", "OrderItem", "OrderStatus", "OrderType",
    "Payment", "PaymentStatus", "PharmacyLog", "PharmacyLogStatus",
]
