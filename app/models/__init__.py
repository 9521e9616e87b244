"""
Database models
"""

from app.models.user import User
from app.models.service import Service
from app.models.booking import Booking
from app.models.event import Event
from app.models.payment import Payment
from app.models.pricing_rule import PricingRule
from app.models.payment_method_config import PaymentMethodConfig
from app.models.notification import Notification
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Service",
    "Booking",
    "Event",
    "Payment",
    "PricingRule",
    "PaymentMethodConfig",
    "Notification",
    "AuditLog",
]
