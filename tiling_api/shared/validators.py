"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional

AU_PHONE_PATTERN = re.compile(r"^(\+61|0)?[2-9]\d{8}$")
POSTCODE_PATTERN = re.compile(r"^\d{4}$")


def normalize_au_phone(phone: Optional[str]) -> Optional[str]:
    """
    Best-effort normalization of an Australian phone number to +61 form.

    0XXXXXXXXX and 61XXXXXXXXX become +61XXXXXXXXX. Any other shape is
    returned exactly as given; this is not a validator.
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    if digits.startswith("61") and len(digits) == 11:
        return f"+61{digits[2:]}"
    if digits.startswith("0") and len(digits) == 10:
        return f"+61{digits[1:]}"
    return phone


def validate_au_phone(phone: str) -> str:
    """
    Validate an Australian phone number as entered on the booking form.

    Spaces, dashes and brackets are ignored.

    Raises:
        ValueError: If the number is not a valid Australian landline or mobile
    """
    compact = re.sub(r"[\s\-()]", "", phone or "")
    if not AU_PHONE_PATTERN.match(compact):
        raise ValueError("Please provide a valid Australian phone number")
    return compact


def validate_postcode(postcode: str) -> str:
    postcode = (postcode or "").strip()
    if not POSTCODE_PATTERN.match(postcode):
        raise ValueError("Postcode must be 4 digits")
    return postcode


def parse_iso_date(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the value is not an ISO calendar date
    """
    try:
        return date.fromisoformat(value.strip())
    except (ValueError, AttributeError) as e:
        raise ValueError("Invalid date format. Use ISO format (YYYY-MM-DD)") from e


def validate_future_date(value: str, today: Optional[date] = None) -> date:
    """Parse an ISO date and require it to be strictly after today"""
    parsed = parse_iso_date(value)
    if parsed <= (today or date.today()):
        raise ValueError("Date must be in the future")
    return parsed
