"""
Booking endpoints: quotes, booking creation, status changes and payment start
"""

from typing import Any, List, Optional
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_booking_service, get_payment_manager
from app.api.v1.endpoints.payments import proceed_payment_response, qr_not_available
from app.config import settings
from app.core.database import get_session
from app.core.security import get_current_user, require_admin
from app.models.booking import BookingPaymentStatus, BookingStatus
from app.models.user import User
from app.schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingStatusResponse,
    BookingStatusUpdate,
    PriceCalculationRequest,
    PriceQuoteResponse,
)
from app.schemas.event import EventResponse
from app.schemas.payment import ProceedPaymentRequest, ProceedPaymentResponse
from app.services.booking_service import BookingService
from app.services.payment_service import PaymentLifecycleManager
from app.services.pricing_service import PricingRuleResolver

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/calc-price", response_model=PriceQuoteResponse)
async def calculate_price(
    request: PriceCalculationRequest,
    db: AsyncSession = Depends(get_session),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    """
    Quote a booking without saving anything
    """
    snapshot = await bookings.service_snapshot(request.service_id)
    quote = await PricingRuleResolver.from_session(db).quote(
        request.event_type,
        request.guest_count,
        request.duration_hours
    )

    return PriceQuoteResponse(
        event_type=quote.event_type,
        guest_count=quote.guest_count,
        duration_hours=quote.used_hours,
        base_price=quote.base_price,
        per_guest=quote.per_guest,
        per_hour=quote.per_hour,
        total_price=quote.total_price,
        currency=settings.DEFAULT_CURRENCY,
        service=snapshot
    )


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    """
    Create a pending booking priced with the current pricing rules
    """
    booking = await bookings.create_booking(booking_data, current_user)
    return BookingResponse.model_validate(booking)


@router.get("/me", response_model=List[BookingResponse])
async def get_my_bookings(
    current_user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    return [BookingResponse.model_validate(b) for b in await bookings.list_for_user(current_user)]


@router.get("/admin/bookings", response_model=List[BookingResponse])
async def list_bookings(
    status: Optional[BookingStatus] = None,
    payment_status: Optional[BookingPaymentStatus] = Query(None, alias="paymentStatus"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    """
    All bookings, newest first (admin only)
    """
    results = await bookings.list_bookings(
        status=status,
        payment_status=payment_status,
        limit=limit,
        offset=offset
    )
    return [BookingResponse.model_validate(b) for b in results]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    booking = await bookings.get_booking(booking_id, current_user)
    return BookingResponse.model_validate(booking)


@router.put("/{booking_id}/status", response_model=BookingStatusResponse)
async def update_booking_status(
    booking_id: UUID,
    update: BookingStatusUpdate,
    admin: User = Depends(require_admin),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    """
    Change a booking's status (admin only). Confirming a paid booking
    publishes an event for it once.
    """
    booking, created_event = await bookings.update_status(booking_id, update.status, admin)

    created = None
    if created_event:
        created = EventResponse.model_validate(created_event)
        created.remaining_tickets = created_event.total_tickets

    return BookingStatusResponse(
        booking=BookingResponse.model_validate(booking),
        created_event=created
    )


@router.get("/{booking_id}/qr")
async def get_booking_qr(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    bookings: BookingService = Depends(get_booking_service)
) -> Any:
    """
    Ticket QR code of a paid booking
    """
    booking = await bookings.get_booking(booking_id, current_user)
    if not booking.qr_code_url:
        raise qr_not_available()

    return {
        "qrCodeUrl": booking.qr_code_url,
        "transactionId": booking.transaction_id,
        "bookingId": str(booking.id),
        "paymentStatus": booking.payment_status.value
    }


@router.post("/{booking_id}/proceed-payment", response_model=ProceedPaymentResponse, status_code=status.HTTP_201_CREATED)
async def proceed_booking_payment(
    booking_id: UUID,
    request: ProceedPaymentRequest,
    current_user: User = Depends(get_current_user),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    Start a manual payment for a booking and return transfer instructions
    """
    payment = await manager.create_payment(
        booking_id,
        request.payment_method,
        request.phone_number,
        actor=current_user
    )
    return await proceed_payment_response(manager, payment)
