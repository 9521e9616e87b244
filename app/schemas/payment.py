"""
Payment schemas for request/response models
"""

from typing import Optional, Dict, Any, List
from datetime import date, datetime, time
from pydantic import AliasChoices, Field
from uuid import UUID

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.payment import PaymentStatus, PaymentMethod


class ProceedPaymentRequest(BaseSchema):
    """Start a manual payment for a booking or an event ticket"""
    # Validated against PaymentMethod (aliases allowed) by the service layer
    payment_method: str = Field(..., min_length=1)
    phone_number: Optional[str] = Field(None, min_length=10, max_length=15)


class ProcessPaymentRequest(BaseSchema):
    """Admin decision: approve (True) or reject (False)"""
    simulate_success: bool = True


class PaymentResponse(IDSchema, TimestampSchema):
    booking_id: Optional[UUID] = None
    event_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    amount: int
    currency: str
    payment_method: PaymentMethod
    phone_number: Optional[str] = None
    transaction_id: str
    status: PaymentStatus
    proof_image_url: Optional[str] = None
    proof_uploaded_at: Optional[datetime] = None
    qr_code_url: Optional[str] = None
    processed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    payment_metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("payment_metadata", "metadata"),
        serialization_alias="metadata"
    )


class ReceiverInfo(BaseSchema):
    name: Optional[str] = None
    phone: Optional[str] = None
    account_number: Optional[str] = None
    note: Optional[str] = None


class PaymentInstructions(BaseSchema):
    """Steps the payer follows to transfer the money"""
    method: Optional[PaymentMethod] = None
    title: str
    steps: List[str]
    note: Optional[str] = None
    amount: int
    currency: str
    phone_number: Optional[str] = None
    receiver: Optional[ReceiverInfo] = None


class ProceedPaymentResponse(BaseSchema):
    payment: PaymentResponse
    instructions: PaymentInstructions
    receiver: Optional[ReceiverInfo] = None


class ProcessPaymentResponse(BaseSchema):
    simulate_success: bool
    status: PaymentStatus
    payment: PaymentResponse


class EventTicketResponse(BaseSchema):
    """A completed or pending ticket purchase with its event"""
    payment: PaymentResponse
    event_title: Optional[str] = None
    event_date: Optional[date] = None
    event_time: Optional[time] = None
    location: Optional[str] = None
