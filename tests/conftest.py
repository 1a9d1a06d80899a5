"""
Shared fixtures.

Every test gets its own in-memory SQLite database on a single shared
connection (StaticPool). Sessions on that connection share one transaction
scope, so commit seeded data before handing control to another session
(a request, or a post-commit runner).
"""

import os
from datetime import date, timedelta

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ["SECURITY_HEADERS_ENABLED"] = "true"
os.environ.pop("REDIS_URL", None)
os.environ.pop("RESEND_API_KEY", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import tiling_api.models  # noqa: E402,F401
from factories import RecordingDispatcher, make_user  # noqa: E402
from tiling_api.database import Base, build_engine, get_db  # noqa: E402
from tiling_api.domain.bookings.router import get_post_commit_dispatcher  # noqa: E402
from tiling_api.domain.bookings.service import BookingService  # noqa: E402
from tiling_api.main import app  # noqa: E402
from tiling_api.utils.file_storage import FileStore, get_file_store  # noqa: E402


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def customer(db):
    return make_user(db, "jane@example.com", name="Jane Citizen")


@pytest.fixture
def other_customer(db):
    return make_user(db, "sam@example.com", name="Sam Other")


@pytest.fixture
def admin(db):
    return make_user(db, "owner@tiling.example.com", role="ADMIN", name="Owner")


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def future_day(today):
    return today + timedelta(days=14)


@pytest.fixture
def file_store(tmp_path):
    return FileStore(upload_dir=str(tmp_path / "uploads"), use_r2=False)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def booking_service(db, file_store, dispatcher):
    return BookingService(db, file_store=file_store, dispatcher=dispatcher)


@pytest.fixture
def client(session_factory, file_store, dispatcher):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: file_store
    app.dependency_overrides[get_post_commit_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
