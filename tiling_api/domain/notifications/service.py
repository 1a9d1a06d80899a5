"""Notification service - one admin notification per booking"""

import logging

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import Booking, Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


def new_booking_message(booking: Booking) -> str:
    user = booking.user
    customer = (user.name or user.email) if user else "Unknown customer"
    return (
        f"You have a new booking: {booking.booking_ref} - {customer}, "
        f"{booking.preferred_date.isoformat()}"
    )


class NotificationService:
    """Service layer for notification business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def create_notification(self, booking_id: int, message: str) -> Notification:
        """
        Create the notification for a booking, or return the one that exists.

        Never raises for duplicates and never creates a second row, even when
        two workers race on the same booking.
        """
        existing = self.repo.get_by_booking_id(self.db, booking_id)
        if existing:
            logger.debug(f"Notification already exists for booking {booking_id}")
            return existing

        if not self.db.query(Booking.id).filter(Booking.id == booking_id).first():
            raise NotFoundError.for_entity("Booking", "id", booking_id)

        try:
            notification = self.repo.insert(self.db, booking_id, message)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if notification is None:
            logger.debug(f"Notification for booking {booking_id} created concurrently")
            return self.repo.get_by_booking_id(self.db, booking_id)

        logger.info(f"🔔 Notification created for booking {booking_id}")
        return notification

    def mark_read(self, notification_id: int) -> Notification:
        notification = self.repo.get_by_id(self.db, notification_id)
        if not notification:
            raise NotFoundError.for_entity("Notification", "id", notification_id)
        if notification.is_read:
            return notification

        try:
            notification.is_read = True
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return notification

    def list_notifications(self, page: int, limit: int) -> tuple[list[Notification], int]:
        return self.repo.list_paged(self.db, page, limit)
