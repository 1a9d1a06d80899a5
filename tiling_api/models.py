from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    picture_url = Column(String(500), nullable=True)  # Avatar URL from the identity provider
    locale = Column(String(20), nullable=True)
    role = Column(String(20), default="USER", nullable=False)  # USER, ADMIN
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="user")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_ref = Column(String(20), unique=True, index=True, nullable=False)  # e.g. TR-48213
    status = Column(String(20), default="pending", nullable=False, index=True)
    service_id = Column(String(50), nullable=False)
    job_size = Column(String(10), nullable=False)  # small, medium, large
    suburb = Column(String(100), nullable=False)
    postcode = Column(String(4), nullable=False)
    description = Column(Text, nullable=True)
    preferred_date = Column(Date, nullable=False, index=True)
    time_slot = Column(String(20), nullable=False)  # morning, afternoon, flexible
    phone = Column(String(20), nullable=False)  # Normalized to +61 where possible
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="bookings")
    files = relationship(
        "BookingFile",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingFile.id",
    )
    rating = relationship(
        "Rating", back_populates="booking", uselist=False, cascade="all, delete-orphan"
    )
    notification = relationship(
        "Notification", back_populates="booking", uselist=False, cascade="all, delete-orphan"
    )


class BookingFile(Base):
    __tablename__ = "booking_files"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    original_name = Column(String(255), nullable=False)
    stored_name = Column(String(255), nullable=False)
    locator = Column(String(500), nullable=False)  # R2 key or local path
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="files")


class BlockedDate(Base):
    """One row per unavailable calendar day; the UNIQUE on date is the source of truth"""

    __tablename__ = "blocked_dates"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, unique=True, nullable=False)
    reason = Column(String(255), nullable=True)
    # Null for administrator-created blocks
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking")


class Rating(Base):
    __tablename__ = "ratings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    score = Column(Integer, nullable=False)  # 1-10
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="rating")
    user = relationship("User")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="notification")
