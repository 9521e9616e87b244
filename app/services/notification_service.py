"""
In-app notifications
"""

from typing import Any, Dict, List, Optional, Union
from uuid import UUID
import logging

from sqlalchemy import select, update, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.notification import Notification, NotificationType, AUDIENCE_USER, AUDIENCE_ADMINS
from app.models.user import User

logger = logging.getLogger(__name__)

# Broadcast recipient: every admin sees one shared row
ADMINS = AUDIENCE_ADMINS

TITLES = {
    NotificationType.BOOKING_CREATED: "New Booking Created",
    NotificationType.PAYMENT_CREATED: "New Payment Created",
    NotificationType.PAYMENT_COMPLETED: "Payment Completed",
    NotificationType.PAYMENT_FAILED: "Payment Failed",
    NotificationType.BOOKING_CONFIRMED: "Booking Confirmed",
    NotificationType.BOOKING_CANCELLED: "Booking Cancelled",
    NotificationType.EVENT_CREATED: "New Event Created",
    NotificationType.SYSTEM: "System Notification",
    NotificationType.PROMOTIONAL: "Promotional Offer",
}


class NotificationService:
    """
    Adds notification rows to the caller's session.

    Nothing is committed here; rows are flushed with the surrounding
    transaction so a rolled back operation leaves no notifications behind.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def notify(
        self,
        recipient: Union[UUID, str],
        type: NotificationType,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        if recipient == ADMINS:
            notification = Notification(user_id=None, audience=AUDIENCE_ADMINS)
        else:
            notification = Notification(user_id=recipient, audience=AUDIENCE_USER)

        notification.type = type
        notification.title = TITLES.get(type, "Notification")
        notification.message = message
        notification.details = _jsonable(metadata or {})
        notification.is_read = False

        self.session.add(notification)
        logger.debug(f"Queued {type.value} notification for {recipient}")
        return notification

    @staticmethod
    def _visible_to(user: User):
        # Admin broadcasts are shared rows; read state is tracked on the row itself
        clause = and_(Notification.audience == AUDIENCE_USER, Notification.user_id == user.id)
        if user.is_admin:
            return or_(clause, Notification.audience == AUDIENCE_ADMINS)
        return clause

    async def list_for_user(
        self,
        user: User,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0
    ) -> List[Notification]:
        query = select(Notification).where(self._visible_to(user))
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def unread_count(self, user: User) -> int:
        result = await self.session.execute(
            select(func.count(Notification.id)).where(
                self._visible_to(user),
                Notification.is_read.is_(False)
            )
        )
        return result.scalar_one()

    async def mark_read(self, notification_id: UUID, user: User) -> Notification:
        result = await self.session.execute(
            select(Notification).where(
                Notification.id == notification_id,
                self._visible_to(user)
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotFoundError("Notification", notification_id)

        notification.is_read = True
        return notification

    async def mark_all_read(self, user: User) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(self._visible_to(user), Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


def _jsonable(data: Dict[str, Any]) -> Dict[str, Any]:
    """Stringify ids so metadata can be stored in a JSON column"""
    return {key: str(value) if isinstance(value, UUID) else value for key, value in data.items()}
