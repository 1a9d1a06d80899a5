"""Blocked date repository - Database operations for the availability ledger"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import BlockedDate, Booking

logger = logging.getLogger(__name__)


class BlockedDateRepository:
    """Repository for blocked date database operations"""

    @staticmethod
    def get_by_id(db: Session, entry_id: int) -> Optional[BlockedDate]:
        return db.query(BlockedDate).filter(BlockedDate.id == entry_id).first()

    @staticmethod
    def get_by_date(db: Session, day: date) -> Optional[BlockedDate]:
        return db.query(BlockedDate).filter(BlockedDate.date == day).first()

    @staticmethod
    def exists_by_date(db: Session, day: date) -> bool:
        return db.query(BlockedDate.id).filter(BlockedDate.date == day).first() is not None

    @staticmethod
    def get_dates_in(db: Session, days: Iterable[date]) -> set[date]:
        """Return the subset of days that already have an entry"""
        days = list(days)
        if not days:
            return set()
        rows = db.query(BlockedDate.date).filter(BlockedDate.date.in_(days)).all()
        return {row[0] for row in rows}

    @staticmethod
    def get_by_booking_id(db: Session, booking_id: int) -> list[BlockedDate]:
        return db.query(BlockedDate).filter(BlockedDate.booking_id == booking_id).all()

    @staticmethod
    def get_in_range(db: Session, start: date, end: date) -> list[BlockedDate]:
        return (
            db.query(BlockedDate)
            .options(joinedload(BlockedDate.booking).joinedload(Booking.user))
            .filter(BlockedDate.date >= start, BlockedDate.date <= end)
            .order_by(BlockedDate.date.asc())
            .all()
        )

    @staticmethod
    def get_from(db: Session, start: date) -> list[BlockedDate]:
        return (
            db.query(BlockedDate)
            .options(joinedload(BlockedDate.booking).joinedload(Booking.user))
            .filter(BlockedDate.date >= start)
            .order_by(BlockedDate.date.asc())
            .all()
        )

    @staticmethod
    def insert(
        db: Session, day: date, reason: Optional[str], booking_id: Optional[int] = None
    ) -> Optional[BlockedDate]:
        """
        Insert an entry inside a savepoint.

        Returns None when the UNIQUE(date) constraint rejects the row, which
        means another transaction blocked the same day first. Only the
        savepoint is rolled back so the caller's transaction stays usable.
        """
        entry = BlockedDate(date=day, reason=reason, booking_id=booking_id)
        try:
            with db.begin_nested():
                db.add(entry)
                db.flush()
        except IntegrityError:
            logger.info(f"ℹ️ Date {day} was blocked concurrently, keeping the existing entry")
            return None
        return entry

    @staticmethod
    def delete(db: Session, entry: BlockedDate) -> None:
        db.delete(entry)
        db.flush()
