"""
Notification schemas for request/response models
"""

from typing import Optional, Dict, Any
from uuid import UUID

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.notification import NotificationType


class NotificationResponse(IDSchema, TimestampSchema):
    user_id: Optional[UUID] = None
    audience: str
    type: NotificationType
    title: str
    message: str
    details: Optional[Dict[str, Any]] = None
    is_read: bool


class UnreadCountResponse(BaseSchema):
    unread: int
