"""
Event model
"""

from sqlalchemy import Column, String, Integer, Text, Date, Time, ForeignKey, Enum, Uuid, CheckConstraint, Index
import enum

from app.models.base import BaseModel
from app.models.booking import EventType


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class Event(BaseModel):
    """
    Publicly listable, ticketed occurrence.

    Remaining capacity is never stored: it is derived from completed
    payments by ``InventoryCounter``.
    """
    __tablename__ = "events"

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    event_type = Column(Enum(EventType), default=EventType.OTHER, nullable=False)
    location = Column(String(255))
    event_date = Column(Date, nullable=False)
    event_time = Column(Time, nullable=False)
    ticket_price = Column(Integer, nullable=False)
    # NULL means unlimited
    total_tickets = Column(Integer, nullable=True)
    status = Column(
        Enum(EventStatus),
        default=EventStatus.PUBLISHED,
        nullable=False,
        index=True
    )
    source_booking_id = Column(Uuid(as_uuid=True), ForeignKey("bookings.id"), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        CheckConstraint("ticket_price >= 0", name="ck_events_ticket_price"),
        CheckConstraint("total_tickets IS NULL OR total_tickets >= 0", name="ck_events_total_tickets"),
        Index("ix_events_natural_key", "title", "event_date", "event_time"),
    )

    @property
    def is_published(self) -> bool:
        return self.status == EventStatus.PUBLISHED

    def __repr__(self):
        return f"<Event(id={self.id}, title={self.title}, status={self.status}, total_tickets={self.total_tickets})>"
