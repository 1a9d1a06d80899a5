"""Rating domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from ...models import Rating


class RatingCreate(BaseModel):
    rating: int = Field(..., ge=1, le=10)
    comment: Optional[str] = Field(None, max_length=2000)


class RatingUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=10)
    comment: Optional[str] = Field(None, max_length=2000)


class RatingResponse(BaseModel):
    id: int
    bookingId: int
    bookingRef: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    createdAt: Optional[dt.datetime] = None

    @classmethod
    def from_rating(cls, rating: Rating) -> "RatingResponse":
        return cls(
            id=rating.id,
            bookingId=rating.booking_id,
            bookingRef=rating.booking.booking_ref if rating.booking else None,
            rating=rating.score,
            comment=rating.comment,
            createdAt=rating.created_at,
        )


class RatingAverageResponse(BaseModel):
    averageRating: Optional[float] = None


class RatingCountResponse(BaseModel):
    totalRatings: int
