"""Notification domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel

from ...models import Notification
from ...shared.responses import UserInfo


class NotificationBookingInfo(BaseModel):
    bookingRef: str
    status: str
    serviceId: str
    suburb: str
    postcode: str
    preferredDate: dt.date
    timeSlot: str


class NotificationResponse(BaseModel):
    id: int
    bookingId: int
    bookingRef: Optional[str] = None
    message: str
    isRead: bool
    createdAt: Optional[dt.datetime] = None
    booking: Optional[NotificationBookingInfo] = None
    user: Optional[UserInfo] = None

    @classmethod
    def from_notification(cls, notification: Notification) -> "NotificationResponse":
        booking = notification.booking
        info = None
        if booking is not None:
            info = NotificationBookingInfo(
                bookingRef=booking.booking_ref,
                status=booking.status,
                serviceId=booking.service_id,
                suburb=booking.suburb,
                postcode=booking.postcode,
                preferredDate=booking.preferred_date,
                timeSlot=booking.time_slot,
            )
        return cls(
            id=notification.id,
            bookingId=notification.booking_id,
            bookingRef=booking.booking_ref if booking else None,
            message=notification.message,
            isRead=notification.is_read,
            createdAt=notification.created_at,
            booking=info,
            user=UserInfo.from_user(booking.user) if booking else None,
        )
