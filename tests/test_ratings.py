from datetime import timedelta

import pytest

from factories import booking_create
from tiling_api.domain.ratings.repository import RatingRepository
from tiling_api.domain.ratings.service import RatingService
from tiling_api.errors import InvalidInputError, NotFoundError, RatingExistsError
from tiling_api.models import Rating


@pytest.fixture
def rating_service(db):
    return RatingService(db)


@pytest.fixture
def booking(booking_service, customer, future_day):
    return booking_service.create_booking(booking_create(future_day), customer.id)


class TestCreateRating:
    def test_create(self, rating_service, booking, customer):
        rating = rating_service.create_rating(booking.id, 9, "Great grout work", customer.id)

        assert rating.score == 9
        assert rating.comment == "Great grout work"
        assert rating.booking_id == booking.id

    def test_second_rating_conflicts(self, rating_service, booking, customer):
        rating_service.create_rating(booking.id, 9, None, customer.id)

        with pytest.raises(RatingExistsError) as exc:
            rating_service.create_rating(booking.id, 3, None, customer.id)
        assert exc.value.status_code == 409

    def test_concurrent_insert_conflicts(self, rating_service, booking, customer, db, monkeypatch):
        rating_service.create_rating(booking.id, 9, None, customer.id)
        monkeypatch.setattr(
            RatingRepository, "exists_for_booking", staticmethod(lambda _db, _booking_id: False)
        )

        with pytest.raises(RatingExistsError):
            rating_service.create_rating(booking.id, 4, None, customer.id)
        assert db.query(Rating).count() == 1

    @pytest.mark.parametrize("score", [0, 11, -1])
    def test_score_out_of_range(self, rating_service, booking, customer, score):
        with pytest.raises(InvalidInputError) as exc:
            rating_service.create_rating(booking.id, score, None, customer.id)
        assert exc.value.code == "INVALID_RATING"

    def test_missing_booking(self, rating_service, customer):
        with pytest.raises(NotFoundError):
            rating_service.create_rating(999, 5, None, customer.id)


class TestUpdateRating:
    def test_partial_update(self, rating_service, booking, customer):
        rating = rating_service.create_rating(booking.id, 6, "Fine", customer.id)

        updated = rating_service.update_rating(rating.id, {"rating": 8})
        assert updated.score == 8
        assert updated.comment == "Fine"

        updated = rating_service.update_rating(rating.id, {"comment": None})
        assert updated.score == 8
        assert updated.comment is None

    def test_invalid_score_leaves_rating_unchanged(self, rating_service, booking, customer):
        rating = rating_service.create_rating(booking.id, 6, None, customer.id)

        with pytest.raises(InvalidInputError):
            rating_service.update_rating(rating.id, {"rating": 12})
        assert rating_service.get_rating(rating.id).score == 6


class TestStats:
    def test_empty_average_is_none(self, rating_service):
        assert rating_service.average_rating() is None
        assert rating_service.total_ratings() == 0

    def test_average_is_rounded(self, rating_service, booking_service, customer, future_day):
        for offset, score in enumerate([7, 8, 8]):
            booking = booking_service.create_booking(
                booking_create(future_day + timedelta(days=offset)), customer.id
            )
            rating_service.create_rating(booking.id, score, None, customer.id)

        assert rating_service.average_rating() == 7.67
        assert rating_service.total_ratings() == 3

    def test_delete(self, rating_service, booking, customer):
        rating = rating_service.create_rating(booking.id, 5, None, customer.id)

        rating_service.delete_rating(rating.id)

        assert rating_service.total_ratings() == 0
        with pytest.raises(NotFoundError):
            rating_service.get_rating_for_booking(booking.id)
