"""
Event endpoints: publishing, listing with remaining tickets, ticket purchase
"""

from typing import Any, List, Optional
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_audit, get_payment_manager
from app.api.v1.endpoints.payments import proceed_payment_response
from app.core.database import get_session, db_manager
from app.core.exceptions import InvalidStateError, NotFoundError, SoldOutError, ValidationError
from app.core.security import get_current_user, get_optional_user, require_admin
from app.models.booking import EventType
from app.models.event import Event, EventStatus
from app.models.payment import Payment
from app.models.user import User
from app.schemas.event import EventCreate, EventResponse, EventUpdate
from app.schemas.payment import ProceedPaymentRequest, ProceedPaymentResponse
from app.schemas.response import MessageResponse
from app.services.audit_service import AuditService
from app.services.inventory_service import InventoryCounter
from app.services.payment_service import PaymentLifecycleManager

router = APIRouter()
logger = logging.getLogger(__name__)

# Columns that cannot be cleared by sending null
REQUIRED_EVENT_FIELDS = ("title", "event_type", "event_date", "event_time", "ticket_price", "status")


def _with_remaining(event: Event, remaining: Optional[int]) -> EventResponse:
    response = EventResponse.model_validate(event)
    response.remaining_tickets = remaining
    return response


async def _visible_event(db: AsyncSession, event_id: UUID, user: Optional[User]) -> Event:
    event = await db.get(Event, event_id)
    # Drafts and cancelled events are only visible to admins
    if not event or (not event.is_published and not (user and user.is_admin)):
        raise NotFoundError("Event", event_id)
    return event


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit)
) -> Any:
    """
    Create a ticketed event (admin only)
    """
    async with db_manager.transaction(db):
        event = Event(
            title=event_data.title,
            description=event_data.description,
            event_type=EventType(event_data.event_type),
            location=event_data.location,
            event_date=event_data.event_date,
            event_time=event_data.event_time,
            ticket_price=event_data.ticket_price,
            total_tickets=event_data.total_tickets,
            status=EventStatus(event_data.status),
            created_by=admin.id
        )
        db.add(event)
        await db.flush()
        audit.record("create_event", "event", event.id, {"title": event.title}, user_id=admin.id)

    logger.info(f"Event {event.id} created by {admin.id}")
    return _with_remaining(event, event.total_tickets)


@router.get("", response_model=List[EventResponse])
async def get_events(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Published events with their remaining tickets
    """
    result = await db.execute(
        select(Event)
        .where(Event.status == EventStatus.PUBLISHED)
        .order_by(Event.event_date, Event.event_time)
        .limit(limit)
        .offset(offset)
    )
    events = list(result.scalars().all())

    remaining = await InventoryCounter(db).remaining_for_events(events)
    return [_with_remaining(event, remaining[event.id]) for event in events]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: UUID,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    event = await _visible_event(db, event_id, current_user)
    remaining = await InventoryCounter(db).remaining_tickets(event.id)
    return _with_remaining(event, remaining)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: UUID,
    event_update: EventUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit)
) -> Any:
    """
    Update an event (admin only). Publishing a draft or cancelling an
    event is a status change.
    """
    update_data = event_update.model_dump(exclude_unset=True)
    for field in REQUIRED_EVENT_FIELDS:
        if field in update_data and update_data[field] is None:
            raise ValidationError(f"{field} cannot be empty", field=field)
    if "event_type" in update_data:
        update_data["event_type"] = EventType(update_data["event_type"])
    if "status" in update_data:
        update_data["status"] = EventStatus(update_data["status"])

    inventory = InventoryCounter(db)
    async with db_manager.transaction(db):
        # Lock against approvals counting sold tickets
        result = await db.execute(
            select(Event)
            .where(Event.id == event_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        event = result.scalar_one_or_none()
        if not event:
            raise NotFoundError("Event", event_id)

        sold = await inventory.count_completed(event.id)
        total_tickets = update_data.get("total_tickets")
        if total_tickets is not None and total_tickets < sold:
            raise InvalidStateError(
                "Capacity cannot be lower than tickets already sold",
                code="CAPACITY_BELOW_SOLD",
                details={"event_id": str(event.id), "sold": sold, "total_tickets": total_tickets}
            )

        old_status = event.status
        for field, value in update_data.items():
            setattr(event, field, value)

        audit.record(
            "update_event",
            "event",
            event.id,
            {"fields": sorted(update_data), "old_status": old_status.value, "new_status": event.status.value},
            user_id=admin.id
        )

    logger.info(f"Event {event.id} updated by {admin.id}", extra={"event_id": event.id})
    return _with_remaining(event, inventory.remaining(event.total_tickets, sold))


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event(
    event_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit)
) -> Any:
    """
    Delete an event (admin only). Events with payments are cancelled
    instead so their tickets and history stay intact.
    """
    async with db_manager.transaction(db):
        event = await db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event", event_id)

        result = await db.execute(select(func.count(Payment.id)).where(Payment.event_id == event.id))
        payment_count = result.scalar_one()

        if payment_count:
            event.status = EventStatus.CANCELLED
            audit.record("cancel_event", "event", event.id, {"payments": payment_count}, user_id=admin.id)
            message = "Event cancelled"
        else:
            await db.delete(event)
            audit.record("delete_event", "event", event_id, {"title": event.title}, user_id=admin.id)
            message = "Event deleted"

    logger.info(f"{message}: {event_id} by {admin.id}", extra={"event_id": event_id})
    return MessageResponse(message=message)


@router.post("/{event_id}/proceed-payment", response_model=ProceedPaymentResponse, status_code=status.HTTP_201_CREATED)
async def proceed_event_payment(
    event_id: UUID,
    request: ProceedPaymentRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    Start a ticket purchase for a published event that still has tickets
    """
    event = await db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event", event_id)
    if not event.is_published:
        raise InvalidStateError("Event not available", code="EVENT_NOT_AVAILABLE", details={"event_id": str(event_id)})

    remaining = await InventoryCounter(db).remaining_tickets(event.id)
    if remaining is not None and remaining <= 0:
        raise SoldOutError(event.id, event.total_tickets)

    payment = await manager.create_event_payment(
        event.id,
        current_user.id,
        request.payment_method,
        request.phone_number
    )
    return await proceed_payment_response(manager, payment)
