"""
Payment model for manual transfer processing
"""

from dataclasses import dataclass
from typing import Union
from uuid import UUID
import enum

from sqlalchemy import (
    Column, String, Integer, Enum, DateTime, ForeignKey, JSON, Uuid, CheckConstraint, Index, text
)

from app.core.exceptions import ValidationError
from app.models.base import BaseModel


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    TELEBIRR = "telebirr"
    CBE = "cbe"
    COMMERCIAL = "commercial"
    ABISINIYA = "abisiniya"


ACTIVE_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PROCESSING)

_METHOD_ALIASES = {
    "abyssinia": PaymentMethod.ABISINIYA,
}


def normalize_payment_method(value) -> PaymentMethod:
    """
    Map a client supplied method name (case-insensitive, aliases allowed)
    to a PaymentMethod
    """
    if isinstance(value, PaymentMethod):
        return value
    key = str(value or "").strip().lower()
    if key in _METHOD_ALIASES:
        return _METHOD_ALIASES[key]
    try:
        return PaymentMethod(key)
    except ValueError:
        raise ValidationError(f"Unsupported payment method: {value}", field="paymentMethod")


@dataclass(frozen=True)
class BookingTarget:
    booking_id: UUID


@dataclass(frozen=True)
class EventTicketTarget:
    event_id: UUID
    user_id: UUID


PaymentTarget = Union[BookingTarget, EventTicketTarget]


class Payment(BaseModel):
    """
    A single attempt to pay for either a booking or one event ticket
    """
    __tablename__ = "payments"

    booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=True, index=True)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("events.id"), nullable=True, index=True)
    # Ticket holder for event payments, payer (when known) for booking payments
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)

    amount = Column(Integer, nullable=False)
    currency = Column(String(3), default="ETB", nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    phone_number = Column(String(20))
    transaction_id = Column(String(64), unique=True, nullable=False)
    status = Column(
        Enum(PaymentStatus),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True
    )

    proof_image_url = Column(String(500))
    proof_uploaded_at = Column(DateTime(timezone=True))
    qr_code_url = Column(String(500))

    processed_at = Column(DateTime(timezone=True))
    failed_at = Column(DateTime(timezone=True))

    # "metadata" is reserved on declarative classes
    payment_metadata = Column("metadata", JSON, default=dict)

    __table_args__ = (
        CheckConstraint(
            "(booking_id IS NOT NULL AND event_id IS NULL) OR "
            "(booking_id IS NULL AND event_id IS NOT NULL AND user_id IS NOT NULL)",
            name="ck_payments_single_target"
        ),
        CheckConstraint("amount >= 0", name="ck_payments_amount"),
        Index(
            "uq_payments_active_booking",
            "booking_id",
            unique=True,
            postgresql_where=text("status IN ('PENDING', 'PROCESSING')"),
            sqlite_where=text("status IN ('PENDING', 'PROCESSING')"),
        ),
    )

    @property
    def target(self) -> PaymentTarget:
        if self.booking_id is not None:
            return BookingTarget(booking_id=self.booking_id)
        return EventTicketTarget(event_id=self.event_id, user_id=self.user_id)

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING

    def __repr__(self):
        return f"<Payment(id={self.id}, target={self.target}, amount={self.amount}, status={self.status})>"
