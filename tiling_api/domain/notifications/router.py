"""Notification router - admin inbox of new bookings"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import User
from ...shared.responses import ApiResponse, PagedResponse, clamp_page
from .schemas import NotificationResponse
from .service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db)


@router.get("", response_model=ApiResponse[PagedResponse[NotificationResponse]])
async def list_notifications(
    page: int = Query(0),
    limit: int = Query(20),
    admin: User = Depends(get_current_admin),
    service: NotificationService = Depends(get_notification_service),
):
    """Notifications, newest first"""
    page, limit = clamp_page(page, limit)
    items, total = service.list_notifications(page, limit)
    return ApiResponse(
        data=PagedResponse.build(
            [NotificationResponse.from_notification(n) for n in items], page, limit, total
        )
    )


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_notification_read(
    notification_id: int,
    admin: User = Depends(get_current_admin),
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.mark_read(notification_id)
    return ApiResponse(
        data=NotificationResponse.from_notification(notification),
        message="Notification marked as read",
    )
