import asyncio

import pytest

from factories import booking_create
from tiling_api.domain.bookings.events import (
    RUNNERS,
    PostCommitDispatcher,
    booking_snapshot,
    enqueue_or_run,
    process_booking_created,
    process_status_changed,
)
from tiling_api.models import Notification


class FakeNotifier:
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.sent = []

    async def _record(self, kind, booking):
        if kind in self.fail:
            raise RuntimeError(f"{kind} provider down")
        self.sent.append((kind, booking["booking_ref"]))

    async def notify_customer_confirmation(self, booking):
        await self._record("customer", booking)

    async def notify_admin(self, booking):
        await self._record("admin", booking)

    async def notify_status_change(self, booking):
        await self._record("status", booking)


class FakeBackgroundTasks:
    def __init__(self):
        self.tasks = []

    def add_task(self, func, *args):
        self.tasks.append((func, args))


@pytest.fixture
def committed_booking(booking_service, db, customer, future_day):
    booking = booking_service.create_booking(booking_create(future_day), customer.id)
    db.commit()
    return booking


def test_snapshot_is_plain_data(committed_booking, customer):
    snapshot = booking_snapshot(committed_booking)

    assert snapshot["booking_ref"] == committed_booking.booking_ref
    assert snapshot["customer_email"] == customer.email
    assert snapshot["customer_name"] == "Jane Citizen"
    assert snapshot["preferred_date"] == committed_booking.preferred_date.isoformat()


def test_booking_created_runs_every_side_effect(committed_booking, session_factory, db):
    notifier = FakeNotifier()

    results = asyncio.run(
        process_booking_created(committed_booking.id, session_factory=session_factory, notifier=notifier)
    )

    assert results == {"notification": True, "customer_email": True, "admin_email": True}
    assert notifier.sent == [
        ("customer", committed_booking.booking_ref),
        ("admin", committed_booking.booking_ref),
    ]
    assert db.query(Notification).filter(Notification.booking_id == committed_booking.id).count() == 1


def test_failed_customer_email_does_not_stop_the_rest(committed_booking, session_factory, db):
    notifier = FakeNotifier(fail={"customer"})

    results = asyncio.run(
        process_booking_created(committed_booking.id, session_factory=session_factory, notifier=notifier)
    )

    assert results == {"notification": True, "customer_email": False, "admin_email": True}
    assert notifier.sent == [("admin", committed_booking.booking_ref)]
    assert db.query(Notification).count() == 1


def test_running_twice_keeps_one_notification(committed_booking, session_factory, db):
    for _ in range(2):
        asyncio.run(
            process_booking_created(
                committed_booking.id, session_factory=session_factory, notifier=FakeNotifier()
            )
        )
    assert db.query(Notification).count() == 1


def test_missing_booking_is_skipped(session_factory):
    notifier = FakeNotifier()

    results = asyncio.run(process_booking_created(9999, session_factory=session_factory, notifier=notifier))

    assert results == {"notification": False, "customer_email": False, "admin_email": False}
    assert notifier.sent == []


def test_status_changed_emails_customer(committed_booking, session_factory):
    notifier = FakeNotifier()
    assert asyncio.run(
        process_status_changed(committed_booking.id, session_factory=session_factory, notifier=notifier)
    )
    assert notifier.sent == [("status", committed_booking.booking_ref)]

    failing = FakeNotifier(fail={"status"})
    assert not asyncio.run(
        process_status_changed(committed_booking.id, session_factory=session_factory, notifier=failing)
    )


def test_dispatcher_runs_in_process_without_queue():
    tasks = FakeBackgroundTasks()
    dispatcher = PostCommitDispatcher(tasks, use_queue=False)

    dispatcher.booking_created(1)
    dispatcher.status_changed(2)

    assert tasks.tasks == [
        (RUNNERS["process_booking_created_task"], (1,)),
        (RUNNERS["process_status_changed_task"], (2,)),
    ]


def test_dispatcher_queues_when_redis_configured():
    tasks = FakeBackgroundTasks()
    PostCommitDispatcher(tasks, use_queue=True).booking_created(5)

    assert tasks.tasks == [(enqueue_or_run, ("process_booking_created_task", 5))]


def test_enqueue_falls_back_to_in_process(monkeypatch):
    import arq

    ran = []

    async def unreachable(*_args, **_kwargs):
        raise ConnectionError("redis down")

    async def fake_runner(booking_id):
        ran.append(booking_id)

    monkeypatch.setattr(arq, "create_pool", unreachable)
    monkeypatch.setitem(RUNNERS, "process_booking_created_task", fake_runner)

    asyncio.run(enqueue_or_run("process_booking_created_task", 11))

    assert ran == [11]


class FakePool:
    def __init__(self, enqueue_error=None):
        self.enqueue_error = enqueue_error
        self.enqueued = []
        self.closed = False

    async def enqueue_job(self, name, *args):
        if self.enqueue_error:
            raise self.enqueue_error
        self.enqueued.append((name, args))
        return type("Job", (), {"job_id": "job-1"})()

    async def aclose(self):
        self.closed = True


@pytest.fixture
def runner_calls(monkeypatch):
    ran = []

    async def fake_runner(booking_id):
        ran.append(booking_id)

    monkeypatch.setitem(RUNNERS, "process_booking_created_task", fake_runner)
    return ran


def install_pool(monkeypatch, pool):
    import arq

    async def create_pool(*_args, **_kwargs):
        return pool

    monkeypatch.setattr(arq, "create_pool", create_pool)


def test_enqueued_job_is_not_run_in_process_and_pool_closed(monkeypatch, runner_calls):
    pool = FakePool()
    install_pool(monkeypatch, pool)

    asyncio.run(enqueue_or_run("process_booking_created_task", 12))

    assert pool.enqueued == [("process_booking_created_task", (12,))]
    assert runner_calls == []
    assert pool.closed


def test_rejected_enqueue_runs_in_process_and_closes_pool(monkeypatch, runner_calls):
    pool = FakePool(enqueue_error=ConnectionError("connection reset"))
    install_pool(monkeypatch, pool)

    asyncio.run(enqueue_or_run("process_booking_created_task", 13))

    assert runner_calls == [13]
    assert pool.closed


def test_database_failure_while_loading_booking_is_logged(monkeypatch, session_factory):
    from tiling_api.domain.bookings import events

    def unavailable(_db, _booking_id):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(events.BookingRepository, "get_by_id", staticmethod(unavailable))
    notifier = FakeNotifier()

    created = asyncio.run(process_booking_created(1, session_factory=session_factory, notifier=notifier))
    changed = asyncio.run(process_status_changed(1, session_factory=session_factory, notifier=notifier))

    assert created == {"notification": False, "customer_email": False, "admin_email": False}
    assert changed is False
    assert notifier.sent == []
