"""Rating router - FastAPI endpoints for booking ratings"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import ensure_owner_or_admin, get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import ApiResponse
from .schemas import (
    RatingAverageResponse,
    RatingCountResponse,
    RatingCreate,
    RatingResponse,
    RatingUpdate,
)
from .service import RatingService

router = APIRouter(prefix="/api/ratings", tags=["Ratings"])


def get_rating_service(db: Session = Depends(get_db)) -> RatingService:
    """Dependency injection for RatingService"""
    return RatingService(db)


# ============================================================================
# STATS
# ============================================================================


@router.get("/stats/average", response_model=ApiResponse[RatingAverageResponse])
async def get_average_rating(service: RatingService = Depends(get_rating_service)):
    return ApiResponse(data=RatingAverageResponse(averageRating=service.average_rating()))


@router.get("/stats/count", response_model=ApiResponse[RatingCountResponse])
async def get_ratings_count(service: RatingService = Depends(get_rating_service)):
    return ApiResponse(data=RatingCountResponse(totalRatings=service.total_ratings()))


# ============================================================================
# PER BOOKING
# ============================================================================


@router.post(
    "/bookings/{booking_id}", status_code=201, response_model=ApiResponse[RatingResponse]
)
async def create_rating(
    booking_id: int,
    data: RatingCreate,
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
):
    """Rate a booking; only its owner (or an admin) may rate it, once"""
    booking = service.get_booking(booking_id)
    ensure_owner_or_admin(current_user, booking.user_id)

    rating = service.create_rating(booking_id, data.rating, data.comment, current_user.id)
    return ApiResponse(data=RatingResponse.from_rating(rating), message="Rating created successfully")


@router.get("/bookings/{booking_id}", response_model=ApiResponse[RatingResponse])
async def get_booking_rating(
    booking_id: int,
    service: RatingService = Depends(get_rating_service),
):
    return ApiResponse(data=RatingResponse.from_rating(service.get_rating_for_booking(booking_id)))


# ============================================================================
# BY ID
# ============================================================================


@router.get("/{rating_id}", response_model=ApiResponse[RatingResponse])
async def get_rating(rating_id: int, service: RatingService = Depends(get_rating_service)):
    return ApiResponse(data=RatingResponse.from_rating(service.get_rating(rating_id)))


@router.put("/{rating_id}", response_model=ApiResponse[RatingResponse])
async def update_rating(
    rating_id: int,
    data: RatingUpdate,
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
):
    rating = service.get_rating(rating_id)
    ensure_owner_or_admin(current_user, rating.booking.user_id)
    rating = service.update_rating(rating_id, data.model_dump(exclude_unset=True))
    return ApiResponse(data=RatingResponse.from_rating(rating), message="Rating updated successfully")


@router.delete("/{rating_id}", response_model=ApiResponse[None])
async def delete_rating(
    rating_id: int,
    current_user: User = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service),
):
    rating = service.get_rating(rating_id)
    ensure_owner_or_admin(current_user, rating.booking.user_id)
    service.delete_rating(rating_id)
    return ApiResponse(message="Rating deleted successfully")
