from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from factories import booking_form
from tiling_api.domain.bookings.schemas import BookingCreate
from tiling_api.errors import InvalidInputError
from tiling_api.shared.enums import BookingStatus, JobSize, TimeSlot
from tiling_api.shared.validators import (
    normalize_au_phone,
    parse_iso_date,
    validate_au_phone,
    validate_future_date,
    validate_postcode,
)


class TestPhone:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0412345678", "+61412345678"),
            ("0412 345 678", "+61412345678"),
            ("61412345678", "+61412345678"),
            ("+61 412 345 678", "+61412345678"),
            ("(02) 9876 5432", "+61298765432"),
        ],
    )
    def test_normalizes_australian_numbers(self, raw, expected):
        assert normalize_au_phone(raw) == expected

    @pytest.mark.parametrize("raw", ["12345", "+1 415 555 0100", ""])
    def test_other_shapes_are_returned_unchanged(self, raw):
        assert normalize_au_phone(raw) == raw

    def test_none_passes_through(self):
        assert normalize_au_phone(None) is None

    @pytest.mark.parametrize("raw", ["0412 345 678", "+61412345678", "(02) 9876-5432", "412345678"])
    def test_valid_numbers(self, raw):
        validate_au_phone(raw)

    @pytest.mark.parametrize("raw", ["0112345678", "04123", "+1 415 555 0100", "phone"])
    def test_invalid_numbers(self, raw):
        with pytest.raises(ValueError):
            validate_au_phone(raw)


class TestDates:
    def test_parse_iso_date(self):
        assert parse_iso_date(" 2031-07-04 ") == date(2031, 7, 4)

    @pytest.mark.parametrize("raw", ["04/07/2031", "2031-13-01", "", "tomorrow"])
    def test_parse_rejects_other_formats(self, raw):
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            parse_iso_date(raw)

    def test_future_date_must_be_after_today(self):
        today = date(2031, 1, 10)
        assert validate_future_date("2031-01-11", today=today) == date(2031, 1, 11)
        with pytest.raises(ValueError, match="future"):
            validate_future_date("2031-01-10", today=today)


class TestPostcode:
    def test_valid(self):
        assert validate_postcode(" 2000 ") == "2000"

    @pytest.mark.parametrize("raw", ["200", "20000", "ABCD"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            validate_postcode(raw)


class TestEnums:
    def test_parse_is_case_insensitive(self):
        assert BookingStatus.from_value("In_Progress") is BookingStatus.IN_PROGRESS
        assert JobSize.from_value(" SMALL ") is JobSize.SMALL
        assert TimeSlot.from_value("flexible") is TimeSlot.FLEXIBLE

    @pytest.mark.parametrize(
        "enum_cls, code",
        [(BookingStatus, "INVALID_STATUS"), (JobSize, "INVALID_JOB_SIZE"), (TimeSlot, "INVALID_TIME_SLOT")],
    )
    def test_unknown_value(self, enum_cls, code):
        with pytest.raises(InvalidInputError) as exc:
            enum_cls.from_value("nope")
        assert exc.value.code == code
        assert "Allowed values" in exc.value.message


class TestBookingCreateSchema:
    def test_past_date_is_rejected(self):
        with pytest.raises(ValidationError):
            BookingCreate(**booking_form(date.today()))

    def test_future_date_is_accepted(self):
        booking = BookingCreate(**booking_form(date.today() + timedelta(days=1)))
        assert booking.date == date.today() + timedelta(days=1)
        assert booking.phone == "0412345678"

    @pytest.mark.parametrize(
        "field, value",
        [("postcode", "21"), ("phone", "12"), ("suburb", "   "), ("description", "x" * 2001)],
    )
    def test_field_rules(self, field, value):
        with pytest.raises(ValidationError):
            BookingCreate(**booking_form(date.today() + timedelta(days=1), **{field: value}))
