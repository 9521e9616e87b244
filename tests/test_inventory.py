"""
Ticket inventory tests
"""

import pytest

from app.core.exceptions import NotFoundError
from app.models.payment import PaymentStatus
from app.services.inventory_service import InventoryCounter


class TestInventoryCounter:
    """Remaining tickets derived from completed payments"""

    def test_remaining_never_negative(self):
        assert InventoryCounter.remaining(2, 5) == 0
        assert InventoryCounter.remaining(10, 3) == 7
        assert InventoryCounter.remaining(None, 3) is None

    @pytest.mark.asyncio
    async def test_only_completed_payments_consume_tickets(self, db_session, test_user, make_event, make_event_payment):
        event = await make_event(total_tickets=3)
        await make_event_payment(event, test_user, status=PaymentStatus.COMPLETED)
        await make_event_payment(event, test_user, status=PaymentStatus.PENDING)
        await make_event_payment(event, test_user, status=PaymentStatus.FAILED)

        remaining = await InventoryCounter(db_session).remaining_tickets(event.id)

        assert remaining == 2

    @pytest.mark.asyncio
    async def test_unlimited_event(self, db_session, test_user, test_event, make_event_payment):
        await make_event_payment(test_event, test_user, status=PaymentStatus.COMPLETED)

        assert await InventoryCounter(db_session).remaining_tickets(test_event.id) is None

    @pytest.mark.asyncio
    async def test_unknown_event(self, db_session):
        import uuid

        with pytest.raises(NotFoundError):
            await InventoryCounter(db_session).remaining_tickets(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_remaining_for_many_events(self, db_session, test_user, make_event, make_event_payment):
        limited = await make_event(title="Limited", total_tickets=2)
        sold_out = await make_event(title="Sold Out", total_tickets=1)
        unlimited = await make_event(title="Open", total_tickets=None)
        await make_event_payment(limited, test_user, status=PaymentStatus.COMPLETED)
        await make_event_payment(sold_out, test_user, status=PaymentStatus.COMPLETED)

        remaining = await InventoryCounter(db_session).remaining_for_events([limited, sold_out, unlimited])

        assert remaining == {limited.id: 1, sold_out.id: 0, unlimited.id: None}

    @pytest.mark.asyncio
    async def test_count_excludes_given_payment(self, db_session, test_user, make_event, make_event_payment):
        event = await make_event(total_tickets=5)
        payment = await make_event_payment(event, test_user, status=PaymentStatus.COMPLETED)

        counter = InventoryCounter(db_session)

        assert await counter.count_completed(event.id) == 1
        assert await counter.count_completed(event.id, exclude_payment_id=payment.id) == 0
