"""
Booking schemas
"""

from pydantic import ConfigDict, Field, EmailStr
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import date, time

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.schemas.common import EventTime
from app.schemas.event import EventResponse
from app.models.booking import EventType, BookingStatus, BookingPaymentStatus


class PriceCalculationRequest(BaseSchema):
    """Quote request"""
    service_id: Optional[UUID] = None
    event_type: EventType
    guest_count: int = Field(..., ge=1, le=1000)
    # Omitted means the pricing rule's default hours
    duration_hours: Optional[int] = Field(None, ge=1)
    event_date: Optional[date] = None
    event_time: Optional[EventTime] = None


class PriceQuoteResponse(BaseSchema):
    """Quote with the inputs it was computed from"""
    event_type: EventType
    guest_count: int
    duration_hours: int
    base_price: int
    per_guest: int
    per_hour: int
    total_price: int
    currency: str
    service: Optional[Dict[str, Any]] = None


class BookingCreate(BaseSchema):
    """Booking creation schema"""
    service_id: Optional[UUID] = None
    customer_name: str = Field(..., min_length=2, max_length=100)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=10, max_length=15)
    event_type: EventType
    event_date: date
    event_time: EventTime
    guest_count: int = Field(..., ge=1, le=1000)
    duration_hours: Optional[int] = Field(None, ge=1)
    message: Optional[str] = Field(None, max_length=1000)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "customerName": "Abebe Kebede",
            "customerEmail": "abebe@example.com",
            "customerPhone": "0911223344",
            "eventType": "wedding",
            "eventDate": "2026-12-20",
            "eventTime": "14:30",
            "guestCount": 150,
            "durationHours": 6
        }
    })


class BookingResponse(IDSchema, TimestampSchema):
    """Booking response schema"""
    user_id: Optional[UUID] = None
    customer_name: str
    customer_email: str
    customer_phone: str
    service_id: Optional[UUID] = None
    service_snapshot: Optional[Dict[str, Any]] = None
    event_type: EventType
    event_date: date
    event_time: time
    guest_count: int
    duration_hours: int
    message: Optional[str] = None
    price_calculated: int
    status: BookingStatus
    payment_status: BookingPaymentStatus
    qr_code_url: Optional[str] = None
    transaction_id: Optional[str] = None


class BookingStatusUpdate(BaseSchema):
    status: BookingStatus


class BookingStatusResponse(BaseSchema):
    """Updated booking and, on first confirmation of a paid booking, the event created for it"""
    booking: BookingResponse
    created_event: Optional[EventResponse] = None
