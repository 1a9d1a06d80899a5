"""Booking domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Booking
from ...shared.responses import UserInfo
from ...shared.validators import validate_au_phone, validate_future_date, validate_postcode


class BookingCreate(BaseModel):
    """Schema for the customer booking form; enum fields are parsed by the service"""

    serviceId: str = Field(..., min_length=1, max_length=50)
    jobSize: str
    suburb: str = Field(..., min_length=1, max_length=100)
    postcode: str
    description: Optional[str] = Field(None, max_length=2000)
    date: dt.date
    timeSlot: str
    phone: str

    @field_validator("serviceId", "suburb")
    @classmethod
    def strip_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v

    @field_validator("postcode")
    @classmethod
    def check_postcode(cls, v):
        return validate_postcode(v)

    @field_validator("date", mode="before")
    @classmethod
    def check_future_date(cls, v):
        if isinstance(v, dt.date):
            v = v.isoformat()
        return validate_future_date(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_au_phone(v)


class BookingUpdate(BaseModel):
    """
    Schema for partial booking updates.

    Only fields present in the request are applied; read them with
    model_dump(exclude_unset=True) so "not sent" and "sent as null" differ.
    """

    serviceId: Optional[str] = Field(None, min_length=1, max_length=50)
    jobSize: Optional[str] = None
    suburb: Optional[str] = Field(None, min_length=1, max_length=100)
    postcode: Optional[str] = None
    description: Optional[str] = Field(None, max_length=2000)
    date: Optional[dt.date] = None
    timeSlot: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("postcode")
    @classmethod
    def check_postcode(cls, v):
        if v is None:
            return v
        return validate_postcode(v)

    @field_validator("date", mode="before")
    @classmethod
    def check_future_date(cls, v):
        if v is None:
            return v
        if isinstance(v, dt.date):
            v = v.isoformat()
        return validate_future_date(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v is None:
            return v
        return validate_au_phone(v)


class BookingStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class FileResponse(BaseModel):
    id: int
    filename: str
    originalFilename: str
    url: str
    fileSize: int
    mimeType: str
    uploadedAt: Optional[dt.datetime] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    bookingRef: str
    status: str
    serviceId: str
    jobSize: str
    suburb: str
    postcode: str
    description: Optional[str] = None
    preferredDate: dt.date
    timeSlot: str
    user: Optional[UserInfo] = None
    customerPhone: str
    files: list[FileResponse] = []
    createdAt: Optional[dt.datetime] = None
    updatedAt: Optional[dt.datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking, file_store=None) -> "BookingResponse":
        files = []
        for f in booking.files:
            url = file_store.url_for(f.id, f.locator) if file_store else f"/api/files/{f.id}"
            files.append(
                FileResponse(
                    id=f.id,
                    filename=f.stored_name,
                    originalFilename=f.original_name,
                    url=url,
                    fileSize=f.size,
                    mimeType=f.mime_type,
                    uploadedAt=f.created_at,
                )
            )
        return cls(
            id=booking.id,
            bookingRef=booking.booking_ref,
            status=booking.status,
            serviceId=booking.service_id,
            jobSize=booking.job_size,
            suburb=booking.suburb,
            postcode=booking.postcode,
            description=booking.description,
            preferredDate=booking.preferred_date,
            timeSlot=booking.time_slot,
            user=UserInfo.from_user(booking.user),
            customerPhone=booking.phone,
            files=files,
            createdAt=booking.created_at,
            updatedAt=booking.updated_at,
        )
