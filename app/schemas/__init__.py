"""
Pydantic schemas for request and response validation
"""

from app.schemas.event import (
    EventCreate,
    EventResponse
)
from app.schemas.booking import (
    PriceCalculationRequest,
    PriceQuoteResponse,
    BookingCreate,
    BookingResponse,
    BookingStatusUpdate,
    BookingStatusResponse
)
from app.schemas.payment import (
    ProceedPaymentRequest,
    ProceedPaymentResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
    PaymentResponse
)
from app.schemas.response import MessageResponse

__all__ = [
    "EventCreate",
    "EventResponse",
    "PriceCalculationRequest",
    "PriceQuoteResponse",
    "BookingCreate",
    "BookingResponse",
    "BookingStatusUpdate",
    "BookingStatusResponse",
    "ProceedPaymentRequest",
    "ProceedPaymentResponse",
    "ProcessPaymentRequest",
    "ProcessPaymentResponse",
    "PaymentResponse",
    "MessageResponse",
]
