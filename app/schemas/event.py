"""
Event schemas
"""

from pydantic import ConfigDict, Field
from typing import Optional
from uuid import UUID
from datetime import date

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.schemas.common import EventTime
from app.models.booking import EventType
from app.models.event import EventStatus


class EventBase(BaseSchema):
    """Base event schema"""
    title: str = Field(..., min_length=2, max_length=120)
    description: Optional[str] = Field(None, max_length=5000)
    event_type: EventType
    location: Optional[str] = Field(None, max_length=150)
    event_date: date
    event_time: EventTime
    ticket_price: int = Field(..., ge=0)
    # None means unlimited capacity
    total_tickets: Optional[int] = Field(None, ge=0)


class EventCreate(EventBase):
    """Event creation schema"""
    status: EventStatus = EventStatus.DRAFT

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "New Year Gala",
            "eventType": "corporate",
            "location": "Addis Ababa",
            "eventDate": "2026-12-31",
            "eventTime": "19:00",
            "ticketPrice": 500,
            "totalTickets": 200,
            "status": "published"
        }
    })


class EventResponse(EventBase, IDSchema, TimestampSchema):
    """Event response schema"""
    status: EventStatus
    source_booking_id: Optional[UUID] = None
    remaining_tickets: Optional[int] = None


class EventUpdate(BaseSchema):
    """Event update schema; only the fields sent are changed"""
    title: Optional[str] = Field(None, min_length=2, max_length=120)
    description: Optional[str] = Field(None, max_length=5000)
    event_type: Optional[EventType] = None
    location: Optional[str] = Field(None, max_length=150)
    event_date: Optional[date] = None
    event_time: Optional[EventTime] = None
    ticket_price: Optional[int] = Field(None, ge=0)
    total_tickets: Optional[int] = Field(None, ge=0)
    status: Optional[EventStatus] = None
