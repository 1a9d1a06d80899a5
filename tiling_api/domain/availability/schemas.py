"""Availability domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from ...models import BlockedDate
from ...shared.responses import UserInfo


class BlockDatesRequest(BaseModel):
    """Schema for the admin block-dates operation; dates are ISO strings"""

    dates: list[str] = Field(..., min_length=1, max_length=365)
    reason: Optional[str] = Field(None, max_length=255)


class BookingSummary(BaseModel):
    id: int
    bookingRef: str
    status: str
    serviceId: str
    jobSize: str
    suburb: str
    postcode: str
    preferredDate: dt.date
    timeSlot: str


class BlockedDateResponse(BaseModel):
    id: int
    date: dt.date
    reason: Optional[str] = None
    createdAt: Optional[dt.datetime] = None
    bookingId: Optional[int] = None
    booking: Optional[BookingSummary] = None
    user: Optional[UserInfo] = None

    @classmethod
    def from_entry(cls, entry: BlockedDate) -> "BlockedDateResponse":
        booking = entry.booking
        summary = None
        user = None
        if booking is not None:
            summary = BookingSummary(
                id=booking.id,
                bookingRef=booking.booking_ref,
                status=booking.status,
                serviceId=booking.service_id,
                jobSize=booking.job_size,
                suburb=booking.suburb,
                postcode=booking.postcode,
                preferredDate=booking.preferred_date,
                timeSlot=booking.time_slot,
            )
            user = UserInfo.from_user(booking.user)
        return cls(
            id=entry.id,
            date=entry.date,
            reason=entry.reason,
            createdAt=entry.created_at,
            bookingId=entry.booking_id,
            booking=summary,
            user=user,
        )


class DateAvailabilityResponse(BaseModel):
    date: dt.date
    blocked: bool
