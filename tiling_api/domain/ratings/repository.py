"""Rating repository - Database operations for booking ratings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import Rating


class RatingRepository:
    """Repository for rating database operations"""

    @staticmethod
    def get_by_id(db: Session, rating_id: int) -> Optional[Rating]:
        return (
            db.query(Rating)
            .options(joinedload(Rating.booking))
            .filter(Rating.id == rating_id)
            .first()
        )

    @staticmethod
    def get_by_booking_id(db: Session, booking_id: int) -> Optional[Rating]:
        return (
            db.query(Rating)
            .options(joinedload(Rating.booking))
            .filter(Rating.booking_id == booking_id)
            .first()
        )

    @staticmethod
    def exists_for_booking(db: Session, booking_id: int) -> bool:
        return db.query(Rating.id).filter(Rating.booking_id == booking_id).first() is not None

    @staticmethod
    def insert(db: Session, **rating_data) -> Optional[Rating]:
        """Insert inside a savepoint; None if UNIQUE(booking_id) rejects the row"""
        rating = Rating(**rating_data)
        try:
            with db.begin_nested():
                db.add(rating)
                db.flush()
        except IntegrityError:
            return None
        return rating

    @staticmethod
    def delete(db: Session, rating: Rating) -> None:
        db.delete(rating)
        db.flush()

    @staticmethod
    def average_score(db: Session) -> Optional[float]:
        return db.query(func.avg(Rating.score)).scalar()

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(Rating.id)).scalar() or 0
