"""
Notification model
"""

from sqlalchemy import Column, String, ForeignKey, Enum, Text, Boolean, JSON, Uuid
import enum

from app.models.base import BaseModel


class NotificationType(str, enum.Enum):
    BOOKING_CREATED = "booking_created"
    PAYMENT_CREATED = "payment_created"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_FAILED = "payment_failed"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    EVENT_CREATED = "event_created"
    SYSTEM = "system"
    PROMOTIONAL = "promotional"


# Audience values
AUDIENCE_USER = "user"
AUDIENCE_ADMINS = "role:admin"


class Notification(BaseModel):
    """
    In-app notification, addressed to one user or broadcast to every admin
    """
    __tablename__ = "notifications"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    audience = Column(String(32), default=AUDIENCE_USER, nullable=False, index=True)
    type = Column(
        Enum(NotificationType),
        nullable=False,
        index=True
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    details = Column(JSON, default=dict)
    is_read = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, audience={self.audience}, user_id={self.user_id}, type={self.type})>"
