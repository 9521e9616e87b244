"""
API endpoints module
"""

from . import admin_config, bookings, events, health, notifications, payments

__all__ = [
    "admin_config",
    "bookings",
    "events",
    "health",
    "notifications",
    "payments"
]
