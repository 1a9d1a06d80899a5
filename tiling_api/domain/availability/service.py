"""
Availability ledger - Business logic for blocked calendar dates.

A date is blocked at most once. Entries linked to a booking follow that
booking (created on create, moved on reschedule, removed on delete); entries
without a booking belong to administrators and are never touched by the
booking flow. The booking-flow methods flush but never commit: the caller
owns the transaction so a booking and its ledger entry land together or not
at all. The administrative operations commit their own work.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...errors import InvalidInputError, NotFoundError
from ...models import BlockedDate
from ...shared.validators import parse_iso_date
from .repository import BlockedDateRepository

logger = logging.getLogger(__name__)

BOOKING_BLOCK_REASON = "Booked"


class AvailabilityLedger:
    """Service layer for the blocked-date ledger"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BlockedDateRepository()

    def is_blocked(self, day: date) -> bool:
        return self.repo.exists_by_date(self.db, day)

    def is_blocked_for_other_than(self, day: date, booking_id: int) -> bool:
        """True when the day is blocked by anything except this booking's own entry"""
        entry = self.repo.get_by_date(self.db, day)
        return entry is not None and entry.booking_id != booking_id

    def block(
        self, day: date, reason: Optional[str], booking_id: Optional[int] = None
    ) -> Optional[BlockedDate]:
        """Block a day. Returns the new entry, or None if the day was already blocked."""
        if self.repo.exists_by_date(self.db, day):
            logger.debug(f"Date {day} already blocked, skipping")
            return None

        entry = self.repo.insert(self.db, day, reason, booking_id)
        if entry is not None:
            logger.info(f"🔒 Blocked {day}" + (f" for booking {booking_id}" if booking_id else ""))
        return entry

    def unblock_if_owned_by(self, day: date, booking_id: int) -> bool:
        """Remove the entry for day only if it was created for booking_id"""
        entry = self.repo.get_by_date(self.db, day)
        if entry is None or entry.booking_id != booking_id:
            return False
        self.repo.delete(self.db, entry)
        logger.info(f"🔓 Unblocked {day} (released by booking {booking_id})")
        return True

    def release_booking(self, booking_id: int) -> int:
        """Remove every entry linked to a booking; returns how many were removed"""
        entries = self.repo.get_by_booking_id(self.db, booking_id)
        for entry in entries:
            self.repo.delete(self.db, entry)
        if entries:
            logger.info(f"🔓 Released {len(entries)} blocked date(s) for booking {booking_id}")
        return len(entries)

    def unblock_by_id(self, entry_id: int) -> None:
        """Administrative unblock; removes the entry whoever created it"""
        entry = self.repo.get_by_id(self.db, entry_id)
        if entry is None:
            raise NotFoundError.for_entity("Blocked date", "id", entry_id)
        day = entry.date
        try:
            self.repo.delete(self.db, entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"🔓 Unblocked {day} (entry {entry_id})")

    def list_in_range(self, start: date, end: date) -> list[BlockedDate]:
        if end < start:
            raise InvalidInputError("End date must not be before start date", code="INVALID_DATE")
        return self.repo.get_in_range(self.db, start, end)

    def list_upcoming(self, today: Optional[date] = None) -> list[BlockedDate]:
        return self.repo.get_from(self.db, today or date.today())

    def find_blocked_among(self, days: Iterable[date]) -> set[date]:
        return self.repo.get_dates_in(self.db, days)

    # ========================================================================
    # ADMINISTRATIVE BATCH BLOCKING
    # ========================================================================

    def block_dates(
        self, raw_dates: list[str], reason: Optional[str], today: Optional[date] = None
    ) -> list[BlockedDate]:
        """
        Validate every date first, then block the ones not already blocked.

        Already-blocked dates are skipped rather than failing the batch.
        """
        today = today or date.today()
        days = []
        for raw in raw_dates:
            try:
                day = parse_iso_date(raw)
            except ValueError as e:
                raise InvalidInputError(
                    f"Invalid date format: {raw}. Use ISO format (YYYY-MM-DD)",
                    code="INVALID_DATE_FORMAT",
                ) from e
            if day <= today:
                raise InvalidInputError(
                    f"Cannot block past or current date: {raw}", code="INVALID_DATE"
                )
            if day not in days:
                days.append(day)

        already_blocked = self.find_blocked_among(days)
        created = []
        try:
            for day in days:
                if day in already_blocked:
                    logger.debug(f"Date {day} already blocked, skipping")
                    continue
                entry = self.repo.insert(self.db, day, reason)
                if entry is not None:
                    created.append(entry)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"🔒 Admin blocked {len(created)} date(s), skipped {len(days) - len(created)} already blocked"
        )
        return created
