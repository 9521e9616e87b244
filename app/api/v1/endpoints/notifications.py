"""
Notification endpoints
"""

from typing import Any, List
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session, db_manager
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.notification import NotificationResponse, UnreadCountResponse
from app.schemas.response import MessageResponse
from app.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    unread_only: bool = Query(False, alias="unreadOnly", description="Filter for unread notifications only"),
    limit: int = Query(50, ge=1, le=100, description="Number of notifications to retrieve"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """Notifications for the current user, including admin broadcasts for admins"""
    notifications = await NotificationService(db).list_for_user(current_user, unread_only, limit, offset)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    return UnreadCountResponse(unread=await NotificationService(db).unread_count(current_user))


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    async with db_manager.transaction(db):
        count = await NotificationService(db).mark_all_read(current_user)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """Mark a notification as read"""
    async with db_manager.transaction(db):
        notification = await NotificationService(db).mark_read(notification_id, current_user)
    return NotificationResponse.model_validate(notification)
