"""
Booking creation and status change tests
"""

from datetime import date, time
import pytest
from sqlalchemy import select, func

from app.core.exceptions import NotFoundError, AuthorizationError
from app.models.booking import BookingStatus, BookingPaymentStatus, EventType
from app.models.event import Event, EventStatus
from app.models.notification import Notification, NotificationType, AUDIENCE_ADMINS
from app.models.service import Service, ServiceStatus
from app.schemas.booking import BookingCreate
from app.services.booking_service import BookingService, AUTO_EVENT_LOCATION, ticket_price_for


def booking_request(**overrides) -> BookingCreate:
    values = dict(
        customerName="Abebe Kebede",
        customerEmail="abebe@example.com",
        customerPhone="0911223344",
        eventType="wedding",
        eventDate="2026-12-20",
        eventTime="14:30",
        guestCount=150,
        durationHours=6,
    )
    values.update(overrides)
    return BookingCreate.model_validate(values)


async def count_events(db_session) -> int:
    result = await db_session.execute(select(func.count(Event.id)))
    return result.scalar_one()


class TestCreateBooking:

    @pytest.mark.asyncio
    async def test_create_booking(self, db_session, test_user):
        booking = await BookingService(db_session).create_booking(booking_request(), test_user)

        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == BookingPaymentStatus.UNPAID
        assert booking.price_calculated == 20000
        assert booking.duration_hours == 6
        assert booking.event_time == time(14, 30)
        assert booking.user_id == test_user.id

        result = await db_session.execute(
            select(Notification).where(Notification.type == NotificationType.BOOKING_CREATED)
        )
        audiences = sorted(n.audience for n in result.scalars().all())
        assert audiences == [AUDIENCE_ADMINS, "user"]

    @pytest.mark.asyncio
    async def test_service_snapshot_is_stored(self, db_session, test_user):
        service = Service(name="Grand Hall", category="venue", price=5000, status=ServiceStatus.ACTIVE)
        db_session.add(service)
        await db_session.commit()

        booking = await BookingService(db_session).create_booking(
            booking_request(serviceId=str(service.id)), test_user
        )

        assert booking.service_id == service.id
        assert booking.service_snapshot["name"] == "Grand Hall"

    @pytest.mark.asyncio
    async def test_inactive_service_rejected(self, db_session, test_user):
        service = Service(name="Old Hall", price=100, status=ServiceStatus.INACTIVE)
        db_session.add(service)
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await BookingService(db_session).create_booking(booking_request(serviceId=str(service.id)), test_user)

    @pytest.mark.asyncio
    async def test_get_booking_of_other_user(self, db_session, other_user, test_booking):
        with pytest.raises(AuthorizationError):
            await BookingService(db_session).get_booking(test_booking.id, other_user)


class TestUpdateStatus:
    """Admin status changes and automatic event publishing"""

    @pytest.mark.asyncio
    async def test_confirm_paid_booking_creates_event(self, db_session, test_user, test_admin, make_booking):
        booking = await make_booking(
            test_user,
            payment_status=BookingPaymentStatus.PAID,
            price_calculated=25000,
            guest_count=100
        )

        booking, event = await BookingService(db_session).update_status(booking.id, "confirmed", test_admin)

        assert booking.status == BookingStatus.CONFIRMED
        assert event is not None
        assert event.title == "wedding - Abebe Kebede"
        assert event.status == EventStatus.PUBLISHED
        assert event.location == AUTO_EVENT_LOCATION
        assert event.ticket_price == 250
        assert event.total_tickets == 100
        assert event.source_booking_id == booking.id
        assert event.event_date == booking.event_date

        result = await db_session.execute(
            select(func.count(Notification.id)).where(
                Notification.audience == AUDIENCE_ADMINS,
                Notification.type == NotificationType.EVENT_CREATED
            )
        )
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_confirm_twice_creates_one_event(self, db_session, test_user, test_admin, make_booking):
        booking = await make_booking(test_user, payment_status=BookingPaymentStatus.PAID)
        service = BookingService(db_session)

        _, first = await service.update_status(booking.id, "confirmed", test_admin)
        _, second = await service.update_status(booking.id, "confirmed", test_admin)

        assert first is not None
        assert second is None
        assert await count_events(db_session) == 1

    @pytest.mark.asyncio
    async def test_existing_event_with_same_natural_key(self, db_session, test_user, test_admin, make_booking, make_event):
        booking = await make_booking(test_user, payment_status=BookingPaymentStatus.PAID)
        await make_event(
            title="wedding - Abebe Kebede",
            event_type=EventType.WEDDING,
            event_date=date(2026, 12, 20),
            event_time=time(14, 30)
        )

        _, created = await BookingService(db_session).update_status(booking.id, "confirmed", test_admin)

        assert created is None
        assert await count_events(db_session) == 1

    @pytest.mark.asyncio
    async def test_confirm_unpaid_booking_creates_no_event(self, db_session, test_admin, test_booking):
        booking, event = await BookingService(db_session).update_status(test_booking.id, "confirmed", test_admin)

        assert booking.status == BookingStatus.CONFIRMED
        assert event is None
        assert await count_events(db_session) == 0

    @pytest.mark.asyncio
    async def test_cancel_notifies_owner(self, db_session, test_user, test_admin, test_booking):
        await BookingService(db_session).update_status(test_booking.id, "cancelled", test_admin)

        result = await db_session.execute(
            select(Notification).where(Notification.user_id == test_user.id)
        )
        notification = result.scalars().one()
        assert notification.type == NotificationType.BOOKING_CANCELLED

    @pytest.mark.asyncio
    async def test_unknown_booking(self, db_session, test_admin):
        import uuid

        with pytest.raises(NotFoundError):
            await BookingService(db_session).update_status(uuid.uuid4(), "confirmed", test_admin)


def test_ticket_price_rounds_half_up():
    class Stub:
        price_calculated = 1001
        guest_count = 2

    assert ticket_price_for(Stub()) == 501
