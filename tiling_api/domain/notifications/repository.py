"""Notification repository - Database operations for booking notifications"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Notification


class NotificationRepository:
    """Repository for notification database operations"""

    @staticmethod
    def get_by_id(db: Session, notification_id: int) -> Optional[Notification]:
        return db.query(Notification).filter(Notification.id == notification_id).first()

    @staticmethod
    def get_by_booking_id(db: Session, booking_id: int) -> Optional[Notification]:
        return db.query(Notification).filter(Notification.booking_id == booking_id).first()

    @staticmethod
    def insert(db: Session, booking_id: int, message: str) -> Optional[Notification]:
        """Insert inside a savepoint; None if UNIQUE(booking_id) already has a row"""
        notification = Notification(booking_id=booking_id, message=message, is_read=False)
        try:
            with db.begin_nested():
                db.add(notification)
                db.flush()
        except IntegrityError:
            return None
        return notification

    @staticmethod
    def list_paged(db: Session, page: int, limit: int) -> tuple[list[Notification], int]:
        """Newest first, with booking and owner preloaded"""
        total = db.query(Notification).count()
        items = (
            db.query(Notification)
            .options(joinedload(Notification.booking).joinedload(Booking.user))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(page * limit)
            .limit(limit)
            .all()
        )
        return items, total
