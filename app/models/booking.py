"""
Booking model
"""

from sqlalchemy import (
    Column, String, ForeignKey, Enum, Integer, Text, Date, Time, JSON, Uuid, CheckConstraint
)
import enum

from app.models.base import BaseModel


class EventType(str, enum.Enum):
    WEDDING = "wedding"
    BIRTHDAY = "birthday"
    CORPORATE = "corporate"
    OTHER = "other"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingPaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class Booking(BaseModel):
    """
    Customer request for event services, priced at creation time
    """
    __tablename__ = "bookings"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)

    service_id = Column(Uuid(as_uuid=True), ForeignKey("services.id"), nullable=True)
    service_snapshot = Column(JSON, nullable=True)

    event_type = Column(Enum(EventType), default=EventType.WEDDING, nullable=False)
    event_date = Column(Date, nullable=False)
    event_time = Column(Time, nullable=False)
    guest_count = Column(Integer, nullable=False)
    duration_hours = Column(Integer, nullable=False, default=5)
    message = Column(Text)
    price_calculated = Column(Integer, nullable=False)

    status = Column(
        Enum(BookingStatus),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_status = Column(
        Enum(BookingPaymentStatus),
        default=BookingPaymentStatus.UNPAID,
        nullable=False,
        index=True
    )
    qr_code_url = Column(String(500))
    transaction_id = Column(String(64))

    __table_args__ = (
        CheckConstraint("guest_count >= 1", name="ck_bookings_guest_count"),
        CheckConstraint("duration_hours >= 1", name="ck_bookings_duration_hours"),
        CheckConstraint("price_calculated >= 0", name="ck_bookings_price"),
    )

    def __repr__(self):
        return (
            f"<Booking(id={self.id}, status={self.status}, "
            f"payment_status={self.payment_status}, price={self.price_calculated})>"
        )
