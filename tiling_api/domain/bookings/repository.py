"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import Booking, BookingFile, User


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_by_id(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.user), selectinload(Booking.files))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_by_ref(db: Session, booking_ref: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.user), selectinload(Booking.files))
            .filter(Booking.booking_ref == booking_ref)
            .first()
        )

    @staticmethod
    def exists_by_ref(db: Session, booking_ref: str) -> bool:
        return db.query(Booking.id).filter(Booking.booking_ref == booking_ref).first() is not None

    @staticmethod
    def create(db: Session, **booking_data) -> Booking:
        """Add a booking and flush so it has an id; the caller commits"""
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def add_file(db: Session, booking: Booking, **file_data) -> BookingFile:
        booking_file = BookingFile(**file_data)
        booking.files.append(booking_file)
        db.flush()
        return booking_file

    @staticmethod
    def get_file(db: Session, file_id: int) -> Optional[BookingFile]:
        return (
            db.query(BookingFile)
            .options(joinedload(BookingFile.booking))
            .filter(BookingFile.id == file_id)
            .first()
        )

    @staticmethod
    def delete(db: Session, booking: Booking) -> None:
        db.delete(booking)
        db.flush()

    @staticmethod
    def search(
        db: Session,
        status: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[int] = None,
        page: int = 0,
        limit: int = 20,
    ) -> tuple[list[Booking], int]:
        """
        Filter bookings, newest first.

        search matches reference, owner name and owner email, case-insensitively.
        Returns (page_items, total_matching).
        """
        query = db.query(Booking).join(User, Booking.user_id == User.id)

        if user_id is not None:
            query = query.filter(Booking.user_id == user_id)
        if status:
            query = query.filter(Booking.status == status)
        if search:
            search_pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Booking.booking_ref.ilike(search_pattern),
                    User.name.ilike(search_pattern),
                    User.email.ilike(search_pattern),
                )
            )

        total = query.count()
        items = (
            query.options(joinedload(Booking.user), selectinload(Booking.files))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(page * limit)
            .limit(limit)
            .all()
        )
        return items, total
