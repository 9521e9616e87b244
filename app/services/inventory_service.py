"""
Ticket inventory derived from completed payments
"""

from typing import Dict, Iterable, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.event import Event
from app.models.payment import Payment, PaymentStatus

logger = logging.getLogger(__name__)


class InventoryCounter:
    """
    Remaining capacity is never stored on the event. Only completed
    payments consume a ticket; pending ones hold nothing.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def remaining(total_tickets: Optional[int], sold: int) -> Optional[int]:
        """None for unlimited events, otherwise never negative"""
        if total_tickets is None:
            return None
        return max(0, total_tickets - sold)

    async def count_completed(self, event_id: UUID, exclude_payment_id: Optional[UUID] = None) -> int:
        query = select(func.count(Payment.id)).where(
            Payment.event_id == event_id,
            Payment.status == PaymentStatus.COMPLETED
        )
        if exclude_payment_id is not None:
            query = query.where(Payment.id != exclude_payment_id)

        result = await self.session.execute(query)
        return result.scalar_one()

    async def remaining_tickets(self, event_id: UUID) -> Optional[int]:
        event = await self.session.get(Event, event_id)
        if not event:
            raise NotFoundError("Event", event_id)
        if event.total_tickets is None:
            return None
        return self.remaining(event.total_tickets, await self.count_completed(event_id))

    async def remaining_for_events(self, events: Iterable[Event]) -> Dict[UUID, Optional[int]]:
        """Remaining tickets for many events with a single grouped count"""
        events = list(events)
        limited_ids = [event.id for event in events if event.total_tickets is not None]

        sold: Dict[UUID, int] = {}
        if limited_ids:
            result = await self.session.execute(
                select(Payment.event_id, func.count(Payment.id))
                .where(
                    Payment.event_id.in_(limited_ids),
                    Payment.status == PaymentStatus.COMPLETED
                )
                .group_by(Payment.event_id)
            )
            sold = {event_id: count for event_id, count in result.all()}

        return {
            event.id: self.remaining(event.total_tickets, sold.get(event.id, 0))
            for event in events
        }
