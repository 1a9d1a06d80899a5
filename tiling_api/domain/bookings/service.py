"""
Booking service - Business logic for the booking lifecycle.

Every write runs as one transaction: the booking row, its files and its
ledger entry are committed together or rolled back together. Side effects
(notification row, emails) are handed to the dispatcher only after commit.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import DateBlockedError, InvalidInputError, NotFoundError
from ...models import Booking, User
from ...shared.enums import BookingStatus, JobSize, TimeSlot
from ...shared.validators import normalize_au_phone
from ...utils.file_storage import FileStore, StoredFile
from ..availability.service import BOOKING_BLOCK_REASON, AvailabilityLedger
from .reference import ReferenceGenerator
from .repository import BookingRepository
from .schemas import BookingCreate, BookingUpdate
from .status import validate_status_transition

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """An attachment read from the request, not yet stored"""

    filename: str
    content_type: str
    data: bytes


class NullDispatcher:
    """Dispatcher that drops side effects; used where no request context exists"""

    def booking_created(self, booking_id: int) -> None:
        pass

    def status_changed(self, booking_id: int) -> None:
        pass


# Booking column for each updatable request field
UPDATE_FIELD_MAP = {
    "serviceId": "service_id",
    "suburb": "suburb",
    "postcode": "postcode",
    "description": "description",
}
NULLABLE_FIELDS = {"description"}


class BookingService:
    """Service layer for booking business logic"""

    def __init__(
        self,
        db: Session,
        file_store: Optional[FileStore] = None,
        dispatcher=None,
        reference_generator: Optional[ReferenceGenerator] = None,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.ledger = AvailabilityLedger(db)
        self.file_store = file_store or FileStore()
        self.dispatcher = dispatcher or NullDispatcher()
        self.references = reference_generator or ReferenceGenerator(
            exists=lambda ref: self.repo.exists_by_ref(self.db, ref)
        )

    # ========================================================================
    # READ PATHS
    # ========================================================================

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError.for_entity("Booking", "id", booking_id)
        return booking

    def get_booking_by_ref(self, booking_ref: str) -> Booking:
        booking = self.repo.get_by_ref(self.db, booking_ref.strip().upper())
        if not booking:
            raise NotFoundError.for_entity("Booking", "reference", booking_ref)
        return booking

    def list_bookings(
        self, status: Optional[str], search: Optional[str], page: int, limit: int
    ) -> tuple[list[Booking], int]:
        status_value = BookingStatus.from_value(status).value if status else None
        return self.repo.search(self.db, status=status_value, search=search, page=page, limit=limit)

    def list_user_bookings(
        self, user_id: int, status: Optional[str], page: int, limit: int
    ) -> tuple[list[Booking], int]:
        status_value = BookingStatus.from_value(status).value if status else None
        return self.repo.search(
            self.db, status=status_value, user_id=user_id, page=page, limit=limit
        )

    # ========================================================================
    # CREATE
    # ========================================================================

    def create_booking(
        self, data: BookingCreate, user_id: int, files: Optional[list[UploadedFile]] = None
    ) -> Booking:
        """
        Create a PENDING booking and block its date.

        Raises:
            DateBlockedError: The date is blocked, including when another
                booking claims it between our check and our insert
            NotFoundError: The owning user does not exist
        """
        job_size = JobSize.from_value(data.jobSize)
        time_slot = TimeSlot.from_value(data.timeSlot)
        preferred_date = data.date

        if self.ledger.is_blocked(preferred_date):
            logger.warning(f"⚠️ Booking rejected, {preferred_date} is blocked")
            raise DateBlockedError(preferred_date)

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError.for_entity("User", "id", user_id)

        stored_files: list[StoredFile] = []
        try:
            booking_ref = self.references.generate()
            booking = self.repo.create(
                self.db,
                booking_ref=booking_ref,
                status=BookingStatus.PENDING.value,
                service_id=data.serviceId,
                job_size=job_size.value,
                suburb=data.suburb,
                postcode=data.postcode,
                description=data.description,
                preferred_date=preferred_date,
                time_slot=time_slot.value,
                phone=normalize_au_phone(data.phone),
                user_id=user.id,
            )

            if self.ledger.block(preferred_date, BOOKING_BLOCK_REASON, booking_id=booking.id) is None:
                # Lost the UNIQUE(date) race to a concurrent request
                raise DateBlockedError(preferred_date)

            stored_files = self._attach_files(booking, files or [])
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_stored(stored_files)
            raise

        logger.info(f"✅ Booking {booking_ref} created for user {user.id} on {preferred_date}")
        self.dispatcher.booking_created(booking.id)
        return self.get_booking(booking.id)

    # ========================================================================
    # UPDATE / RESCHEDULE
    # ========================================================================

    def update_booking(
        self, booking_id: int, data: BookingUpdate, files: Optional[list[UploadedFile]] = None
    ) -> Booking:
        """
        Apply only the fields present in the request.

        A changed date moves this booking's ledger entry in the same
        transaction as the booking row. New files are appended.
        """
        booking = self.get_booking(booking_id)
        changes = data.model_dump(exclude_unset=True)
        cleared = sorted(f for f, v in changes.items() if v is None and f not in NULLABLE_FIELDS)
        if cleared:
            raise InvalidInputError(f"Fields cannot be cleared: {', '.join(cleared)}", code="VALIDATION_ERROR")

        stored_files: list[StoredFile] = []
        try:
            for field, column in UPDATE_FIELD_MAP.items():
                if field in changes:
                    setattr(booking, column, changes[field])
            if "jobSize" in changes:
                booking.job_size = JobSize.from_value(changes["jobSize"]).value
            if "timeSlot" in changes:
                booking.time_slot = TimeSlot.from_value(changes["timeSlot"]).value
            if "phone" in changes:
                booking.phone = normalize_au_phone(changes["phone"])
            if changes.get("date") is not None:
                self._reschedule(booking, changes["date"])

            stored_files = self._attach_files(booking, files or [])
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_stored(stored_files)
            raise

        logger.info(f"✅ Booking {booking.booking_ref} updated: {sorted(changes)}")
        return self.get_booking(booking_id)

    def _reschedule(self, booking: Booking, new_date: date) -> None:
        old_date = booking.preferred_date
        if new_date == old_date:
            logger.debug(f"Booking {booking.booking_ref} date unchanged, ledger untouched")
            return

        if self.ledger.is_blocked_for_other_than(new_date, booking.id):
            logger.warning(f"⚠️ Reschedule of {booking.booking_ref} rejected, {new_date} is blocked")
            raise DateBlockedError(new_date)

        self.ledger.unblock_if_owned_by(old_date, booking.id)
        if self.ledger.block(new_date, BOOKING_BLOCK_REASON, booking_id=booking.id) is None:
            existing = self.ledger.repo.get_by_date(self.db, new_date)
            if existing is None or existing.booking_id != booking.id:
                raise DateBlockedError(new_date)

        booking.preferred_date = new_date
        logger.info(f"📅 Booking {booking.booking_ref} moved from {old_date} to {new_date}")

    # ========================================================================
    # STATUS
    # ========================================================================

    def update_status(self, booking_id: int, new_status: str) -> Booking:
        target = BookingStatus.from_value(new_status)
        booking = self.get_booking(booking_id)
        current = BookingStatus.from_value(booking.status)

        validate_status_transition(current, target)

        try:
            booking.status = target.value
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🔄 Booking {booking.booking_ref} status {current.value} → {target.value}")
        self.dispatcher.status_changed(booking_id)
        return self.get_booking(booking_id)

    # ========================================================================
    # DELETE
    # ========================================================================

    def delete_booking(self, booking_id: int) -> None:
        """
        Release the ledger entry, delete stored files, then delete the row.

        Ledger release and file deletion are each attempted even if the
        other fails; failures are logged and the delete continues.
        """
        booking = self.get_booking(booking_id)
        booking_ref = booking.booking_ref
        locators = [f.locator for f in booking.files]

        try:
            try:
                with self.db.begin_nested():
                    self.ledger.release_booking(booking.id)
            except Exception as e:
                logger.error(f"❌ Failed to release blocked date for {booking_ref}: {e}")

            for locator in locators:
                try:
                    self.file_store.delete(locator)
                except Exception as e:
                    logger.error(f"❌ Failed to delete file {locator} for {booking_ref}: {e}")

            self.repo.delete(self.db, booking)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🗑️ Booking {booking_ref} deleted")

    # ========================================================================
    # FILES
    # ========================================================================

    def _attach_files(self, booking: Booking, files: list[UploadedFile]) -> list[StoredFile]:
        """Validate all files first, then store them and add BookingFile rows"""
        for upload in files:
            self.file_store.validate(upload.filename, upload.content_type, len(upload.data))

        stored = []
        try:
            for upload in files:
                saved = self.file_store.store(
                    upload.data, upload.filename, upload.content_type, booking.booking_ref
                )
                stored.append(saved)
                self.repo.add_file(
                    self.db,
                    booking,
                    original_name=saved.original_name,
                    stored_name=saved.stored_name,
                    locator=saved.locator,
                    mime_type=saved.mime_type,
                    size=saved.size,
                )
        except Exception:
            self._discard_stored(stored)
            raise
        return stored

    def _discard_stored(self, stored: list[StoredFile]) -> None:
        for saved in stored:
            try:
                self.file_store.delete(saved.locator)
            except Exception as e:
                logger.error(f"❌ Failed to clean up stored file {saved.locator}: {e}")
