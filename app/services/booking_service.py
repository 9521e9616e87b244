"""
Booking creation and admin status changes
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import select, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import db_manager
from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.booking import Booking, BookingStatus, BookingPaymentStatus
from app.models.event import Event, EventStatus
from app.models.notification import NotificationType
from app.models.service import Service, ServiceStatus
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.notification_service import ADMINS, NotificationService
from app.services.pricing_service import PricingRuleResolver

logger = logging.getLogger(__name__)

AUTO_EVENT_LOCATION = "To be determined"


def event_title_for(booking: Booking) -> str:
    """Natural key title of the event published for a booking"""
    return f"{booking.event_type.value} - {booking.customer_name}"


def ticket_price_for(booking: Booking) -> int:
    price = Decimal(booking.price_calculated) / Decimal(booking.guest_count)
    return int(price.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class BookingService:
    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[NotificationService] = None,
        audit: Optional[AuditService] = None,
        pricing: Optional[PricingRuleResolver] = None
    ):
        self.session = session
        self.notifier = notifier or NotificationService(session)
        self.audit = audit or AuditService(session)
        self.pricing = pricing or PricingRuleResolver.from_session(session)

    async def service_snapshot(self, service_id: Optional[UUID]) -> Optional[Dict[str, Any]]:
        """Snapshot of an active catalog service; NotFoundError when missing or inactive"""
        if service_id is None:
            return None
        service = await self.session.get(Service, service_id)
        if not service or service.status != ServiceStatus.ACTIVE:
            raise NotFoundError("Service", service_id)
        return service.snapshot()

    async def get_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self.session.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking", booking_id)
        if not actor.is_admin and booking.user_id != actor.id:
            raise AuthorizationError("You can only access your own bookings")
        return booking

    async def list_for_user(self, user: User) -> List[Booking]:
        result = await self.session.execute(
            select(Booking)
            .where(Booking.user_id == user.id)
            .order_by(Booking.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        payment_status: Optional[BookingPaymentStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Booking]:
        """All bookings, newest first, optionally filtered by status"""
        query = select(Booking)
        if status:
            query = query.where(Booking.status == status)
        if payment_status:
            query = query.where(Booking.payment_status == payment_status)
        query = query.order_by(Booking.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create_booking(self, data, user: Optional[User] = None) -> Booking:
        """
        Persist a pending, unpaid booking priced with the current rules.

        ``data`` is a ``BookingCreate``.
        """
        async with db_manager.transaction(self.session):
            snapshot = await self.service_snapshot(data.service_id)
            quote = await self.pricing.quote(data.event_type, data.guest_count, data.duration_hours)

            booking = Booking(
                user_id=user.id if user else None,
                customer_name=data.customer_name,
                customer_email=str(data.customer_email),
                customer_phone=data.customer_phone,
                service_id=data.service_id,
                service_snapshot=snapshot,
                event_type=quote.event_type,
                event_date=data.event_date,
                event_time=data.event_time,
                guest_count=data.guest_count,
                duration_hours=quote.used_hours,
                message=data.message,
                price_calculated=quote.total_price,
                status=BookingStatus.PENDING,
                payment_status=BookingPaymentStatus.UNPAID,
            )
            self.session.add(booking)
            await self.session.flush()

            self.audit.record(
                "create_booking",
                "booking",
                booking.id,
                {"price_calculated": booking.price_calculated, "service_id": data.service_id},
                user_id=user.id if user else None,
            )
            self.notifier.notify(
                ADMINS,
                NotificationType.BOOKING_CREATED,
                f"New booking from {booking.customer_name} for {booking.event_date}",
                {"bookingId": booking.id},
            )
            if user:
                self.notifier.notify(
                    user.id,
                    NotificationType.BOOKING_CREATED,
                    "Your booking has been received",
                    {"bookingId": booking.id},
                )

        logger.info(f"Booking {booking.id} created at {booking.price_calculated}")
        return booking

    async def _event_for(self, booking: Booking) -> Optional[Event]:
        result = await self.session.execute(
            select(Event).where(
                or_(
                    Event.source_booking_id == booking.id,
                    and_(
                        Event.title == event_title_for(booking),
                        Event.event_date == booking.event_date,
                        Event.event_time == booking.event_time
                    )
                )
            )
        )
        return result.scalars().first()

    def _event_from(self, booking: Booking, actor: Optional[User]) -> Event:
        return Event(
            title=event_title_for(booking),
            description=booking.message or (
                f"Event created from booking for {booking.customer_name}. "
                f"Contact: {booking.customer_phone}"
            ),
            event_type=booking.event_type,
            location=AUTO_EVENT_LOCATION,
            event_date=booking.event_date,
            event_time=booking.event_time,
            ticket_price=ticket_price_for(booking),
            total_tickets=booking.guest_count,
            status=EventStatus.PUBLISHED,
            source_booking_id=booking.id,
            created_by=actor.id if actor else None,
        )

    async def update_status(
        self,
        booking_id: UUID,
        status,
        actor: Optional[User] = None
    ) -> Tuple[Booking, Optional[Event]]:
        """
        Set a booking's status.

        Confirming a paid booking publishes an event for it, unless one with
        the same title, date and time already exists. Returns the booking and
        the event created by this call, if any.
        """
        try:
            status = BookingStatus(status)
        except ValueError:
            raise ValidationError("Invalid status", field="status")

        created_event = None
        async with db_manager.transaction(self.session):
            booking = await self.session.get(Booking, booking_id)
            if not booking:
                raise NotFoundError("Booking", booking_id)

            old_status = booking.status
            booking.status = status

            if status == BookingStatus.CONFIRMED and booking.payment_status == BookingPaymentStatus.PAID:
                if await self._event_for(booking) is None:
                    created_event = self._event_from(booking, actor)
                    self.session.add(created_event)
                    await self.session.flush()
                    logger.info(f"Event {created_event.id} created from booking {booking.id}")

            self.audit.record(
                "update_booking_status",
                "booking",
                booking.id,
                {
                    "old_status": old_status.value,
                    "new_status": status.value,
                    "created_event_id": created_event.id if created_event else None,
                },
                user_id=actor.id if actor else None,
            )

            if booking.user_id and status in (BookingStatus.CONFIRMED, BookingStatus.CANCELLED):
                suffix = " and published as an event" if created_event else ""
                self.notifier.notify(
                    booking.user_id,
                    NotificationType.BOOKING_CONFIRMED if status == BookingStatus.CONFIRMED
                    else NotificationType.BOOKING_CANCELLED,
                    f"Your booking has been {status.value}{suffix}",
                    {"bookingId": booking.id, "status": status.value,
                     "eventId": created_event.id if created_event else None},
                )

            if created_event:
                self.notifier.notify(
                    ADMINS,
                    NotificationType.EVENT_CREATED,
                    f"Event automatically created from confirmed booking: {created_event.title}",
                    {"eventId": created_event.id, "bookingId": booking.id},
                )

        return booking, created_event
