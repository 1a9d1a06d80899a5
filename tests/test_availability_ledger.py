from datetime import timedelta

import pytest

from factories import booking_create
from tiling_api.domain.availability.repository import BlockedDateRepository
from tiling_api.domain.availability.service import BOOKING_BLOCK_REASON, AvailabilityLedger
from tiling_api.errors import InvalidInputError, NotFoundError
from tiling_api.models import BlockedDate


@pytest.fixture
def ledger(db):
    return AvailabilityLedger(db)


class TestBlock:
    def test_block_creates_entry(self, ledger, db, future_day):
        entry = ledger.block(future_day, "Public holiday")
        db.commit()

        assert entry is not None
        assert entry.date == future_day
        assert entry.booking_id is None
        assert ledger.is_blocked(future_day)

    def test_second_block_of_same_day_is_skipped(self, ledger, db, future_day):
        first = ledger.block(future_day, "Holiday")
        second = ledger.block(future_day, "Another reason")
        db.commit()

        assert first is not None
        assert second is None
        assert db.query(BlockedDate).count() == 1
        assert db.query(BlockedDate).one().reason == "Holiday"

    def test_unique_violation_returns_none_and_keeps_transaction_usable(
        self, ledger, db, future_day, monkeypatch
    ):
        ledger.block(future_day, "Holiday")
        db.commit()

        # Simulate a check that raced: the pre-check sees nothing
        monkeypatch.setattr(
            BlockedDateRepository, "exists_by_date", staticmethod(lambda _db, _day: False)
        )
        assert ledger.block(future_day, "Late arrival") is None

        other_day = future_day + timedelta(days=1)
        assert ledger.block(other_day, "Still works") is not None
        db.commit()
        assert db.query(BlockedDate).count() == 2

    def test_is_blocked_for_other_than(self, ledger, db, booking_service, customer, future_day):
        booking = booking_service.create_booking(booking_create(future_day), customer.id)

        assert not ledger.is_blocked_for_other_than(future_day, booking.id)
        assert ledger.is_blocked_for_other_than(future_day, booking.id + 1)
        assert not ledger.is_blocked_for_other_than(future_day + timedelta(days=1), booking.id)


class TestUnblock:
    def test_unblock_if_owned_by_only_removes_own_entry(
        self, ledger, db, booking_service, customer, future_day
    ):
        booking = booking_service.create_booking(booking_create(future_day), customer.id)
        admin_day = future_day + timedelta(days=1)
        ledger.block(admin_day, "Holiday")
        db.commit()

        assert not ledger.unblock_if_owned_by(admin_day, booking.id)
        assert ledger.is_blocked(admin_day)

        assert ledger.unblock_if_owned_by(future_day, booking.id)
        db.commit()
        assert not ledger.is_blocked(future_day)

    def test_release_booking_removes_linked_entries(
        self, ledger, db, booking_service, customer, future_day
    ):
        booking = booking_service.create_booking(booking_create(future_day), customer.id)
        admin_day = future_day + timedelta(days=2)
        ledger.block(admin_day, "Holiday")
        db.commit()

        assert ledger.release_booking(booking.id) == 1
        db.commit()
        assert not ledger.is_blocked(future_day)
        assert ledger.is_blocked(admin_day)

    def test_unblock_by_id_removes_any_entry(self, ledger, db, booking_service, customer, future_day):
        booking_service.create_booking(booking_create(future_day), customer.id)
        entry = BlockedDateRepository.get_by_date(db, future_day)

        ledger.unblock_by_id(entry.id)
        assert not ledger.is_blocked(future_day)

    def test_unblock_by_id_missing(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.unblock_by_id(9999)


class TestListing:
    def test_list_in_range_inclusive_and_ordered(self, ledger, db, future_day):
        for offset in (3, 0, 1, 10):
            ledger.block(future_day + timedelta(days=offset), None)
        db.commit()

        entries = ledger.list_in_range(future_day, future_day + timedelta(days=3))
        assert [e.date for e in entries] == [
            future_day,
            future_day + timedelta(days=1),
            future_day + timedelta(days=3),
        ]

    def test_list_in_range_rejects_reversed_range(self, ledger, future_day):
        with pytest.raises(InvalidInputError) as exc:
            ledger.list_in_range(future_day, future_day - timedelta(days=1))
        assert exc.value.code == "INVALID_DATE"

    def test_list_upcoming_skips_past_entries(self, ledger, db, today):
        db.add(BlockedDate(date=today - timedelta(days=3), reason="Old"))
        db.add(BlockedDate(date=today + timedelta(days=3), reason="Soon"))
        db.commit()

        assert [e.reason for e in ledger.list_upcoming(today)] == ["Soon"]

    def test_booking_entries_use_booked_reason(self, ledger, booking_service, customer, future_day):
        booking = booking_service.create_booking(booking_create(future_day), customer.id)

        [entry] = ledger.list_upcoming()
        assert entry.reason == BOOKING_BLOCK_REASON
        assert entry.booking_id == booking.id
        assert entry.booking.user.email == customer.email


class TestBlockDates:
    def test_blocks_new_dates_and_skips_existing(self, ledger, db, future_day, today):
        ledger.block(future_day, "Existing")
        db.commit()
        second = future_day + timedelta(days=1)

        created = ledger.block_dates(
            [future_day.isoformat(), second.isoformat(), second.isoformat()], "Leave", today=today
        )

        assert [e.date for e in created] == [second]
        assert created[0].reason == "Leave"
        assert db.query(BlockedDate).count() == 2

    def test_rejects_today_without_blocking_anything(self, ledger, db, future_day, today):
        with pytest.raises(InvalidInputError) as exc:
            ledger.block_dates([future_day.isoformat(), today.isoformat()], None, today=today)

        assert exc.value.code == "INVALID_DATE"
        assert db.query(BlockedDate).count() == 0

    def test_rejects_malformed_date(self, ledger, today):
        with pytest.raises(InvalidInputError) as exc:
            ledger.block_dates(["2030-02-30"], None, today=today)
        assert exc.value.code == "INVALID_DATE_FORMAT"
