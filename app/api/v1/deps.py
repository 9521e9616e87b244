"""
Service dependencies for the v1 endpoints
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.storage import LocalFileStorage, get_storage
from app.services.audit_service import AuditService
from app.services.booking_service import BookingService
from app.services.payment_service import PaymentLifecycleManager


def get_audit(request: Request, db: AsyncSession = Depends(get_session)) -> AuditService:
    """Audit writer stamped with the caller's address and user agent"""
    return AuditService(
        db,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent")
    )


def get_payment_manager(
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit),
    storage: LocalFileStorage = Depends(get_storage)
) -> PaymentLifecycleManager:
    return PaymentLifecycleManager(db, audit=audit, storage=storage)


def get_booking_service(
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit)
) -> BookingService:
    return BookingService(db, audit=audit)
