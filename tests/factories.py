"""Builders shared by the test modules"""

from tiling_api.domain.bookings.schemas import BookingCreate
from tiling_api.models import User
from tiling_api.security_utils import issue_session_token


class RecordingDispatcher:
    """Collects post-commit events instead of running them"""

    def __init__(self):
        self.events = []

    def booking_created(self, booking_id):
        self.events.append(("booking_created", booking_id))

    def status_changed(self, booking_id):
        self.events.append(("status_changed", booking_id))


def make_user(db, email, role="USER", name=None):
    user = User(email=email, name=name, role=role)
    db.add(user)
    db.commit()
    return user


def booking_form(day, **overrides):
    data = {
        "serviceId": "floor-tiling",
        "jobSize": "medium",
        "suburb": "Parramatta",
        "postcode": "2150",
        "description": "Bathroom floor, about 6 square metres",
        "date": day.isoformat(),
        "timeSlot": "morning",
        "phone": "0412 345 678",
    }
    data.update(overrides)
    return data


def booking_create(day, **overrides) -> BookingCreate:
    return BookingCreate(**booking_form(day, **overrides))


def auth_headers(user):
    return {"Authorization": f"Bearer {issue_session_token(user.id, user.email, user.name)}"}
