"""Rating service - at most one rating per booking"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidInputError, NotFoundError, RatingExistsError
from ...models import Booking, Rating
from .repository import RatingRepository

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 10


def check_score(score: int) -> None:
    if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidInputError(
            f"Rating must be an integer between {MIN_SCORE} and {MAX_SCORE}", code="INVALID_RATING"
        )


class RatingService:
    """Service layer for rating business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = RatingRepository()

    def create_rating(
        self, booking_id: int, score: int, comment: Optional[str], user_id: Optional[int]
    ) -> Rating:
        """
        Rate a booking once.

        Raises:
            NotFoundError: The booking does not exist
            RatingExistsError: The booking already has a rating
        """
        check_score(score)
        booking = self.get_booking(booking_id)

        if self.repo.exists_for_booking(self.db, booking_id):
            raise RatingExistsError("A rating already exists for this booking")

        try:
            rating = self.repo.insert(
                self.db, booking_id=booking_id, user_id=user_id, score=score, comment=comment
            )
            if rating is None:
                raise RatingExistsError("A rating already exists for this booking")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"⭐ Created rating {rating.id} for booking {booking.booking_ref}")
        return rating

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError.for_entity("Booking", "id", booking_id)
        return booking

    def get_rating(self, rating_id: int) -> Rating:
        rating = self.repo.get_by_id(self.db, rating_id)
        if not rating:
            raise NotFoundError.for_entity("Rating", "id", rating_id)
        return rating

    def get_rating_for_booking(self, booking_id: int) -> Rating:
        rating = self.repo.get_by_booking_id(self.db, booking_id)
        if not rating:
            raise NotFoundError.for_entity("Rating", "bookingId", booking_id)
        return rating

    def update_rating(self, rating_id: int, changes: dict) -> Rating:
        """Apply only the provided keys ('rating', 'comment')"""
        rating = self.get_rating(rating_id)
        try:
            if changes.get("rating") is not None:
                check_score(changes["rating"])
                rating.score = changes["rating"]
            if "comment" in changes:
                rating.comment = changes["comment"]
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"⭐ Updated rating {rating_id}")
        return rating

    def delete_rating(self, rating_id: int) -> None:
        rating = self.get_rating(rating_id)
        try:
            self.repo.delete(self.db, rating)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"🗑️ Deleted rating {rating_id}")

    def average_rating(self) -> Optional[float]:
        average = self.repo.average_score(self.db)
        return round(float(average), 2) if average is not None else None

    def total_ratings(self) -> int:
        return self.repo.count(self.db)
