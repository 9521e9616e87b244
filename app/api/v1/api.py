"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from app.api.v1.endpoints import (
    admin_config,
    bookings,
    events,
    health,
    notifications,
    payments
)

api_router = APIRouter()

# Include all routers
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(admin_config.router, prefix="/admin-config", tags=["admin-config"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
