"""
Post-commit booking side effects.

BookingService hands booking ids to a dispatcher only after its commit has
returned. The dispatcher schedules the work after the HTTP response, either
in-process through FastAPI BackgroundTasks or on the ARQ worker when
REDIS_URL is configured. Every runner opens its own session and isolates
each side effect, so one failing email never stops the notification row or
the other email. Nothing here is retried within the request.
"""

import logging
from typing import Callable, Optional

from fastapi import BackgroundTasks

from ...config import REDIS_URL
from ...database import SessionLocal
from ...email_service import EmailNotifier
from ...models import Booking
from ..notifications.service import NotificationService, new_booking_message
from .repository import BookingRepository

logger = logging.getLogger(__name__)


def booking_snapshot(booking: Booking) -> dict:
    """Plain values the notifier needs, detached from the session"""
    user = booking.user
    return {
        "id": booking.id,
        "booking_ref": booking.booking_ref,
        "status": booking.status,
        "service_id": booking.service_id,
        "job_size": booking.job_size,
        "suburb": booking.suburb,
        "postcode": booking.postcode,
        "description": booking.description,
        "preferred_date": booking.preferred_date.isoformat(),
        "time_slot": booking.time_slot,
        "phone": booking.phone,
        "customer_email": user.email if user else None,
        "customer_name": (user.name or user.email) if user else "Customer",
    }


async def process_booking_created(
    booking_id: int,
    session_factory: Callable = SessionLocal,
    notifier: Optional[EmailNotifier] = None,
) -> dict:
    """
    Create the booking's notification, then email the customer and the admin.

    Returns a summary of which side effects succeeded. Failures are logged,
    never raised.
    """
    notifier = notifier or EmailNotifier()
    results = {"notification": False, "customer_email": False, "admin_email": False}

    try:
        db = session_factory()
        try:
            booking = BookingRepository.get_by_id(db, booking_id)
            if not booking:
                logger.warning(f"⚠️ Booking {booking_id} vanished before post-commit processing")
                return results

            snapshot = booking_snapshot(booking)

            try:
                NotificationService(db).create_notification(booking_id, new_booking_message(booking))
                results["notification"] = True
            except Exception as e:
                logger.error(f"❌ Failed to create notification for booking {booking_id}: {e}", exc_info=True)
        finally:
            db.close()
    except Exception as e:
        logger.error(f"❌ Failed to load booking {booking_id} for post-commit processing: {e}", exc_info=True)
        return results

    try:
        await notifier.notify_customer_confirmation(snapshot)
        results["customer_email"] = True
    except Exception as e:
        logger.error(f"❌ Failed to send confirmation email for {snapshot['booking_ref']}: {e}")

    try:
        await notifier.notify_admin(snapshot)
        results["admin_email"] = True
    except Exception as e:
        logger.error(f"❌ Failed to send admin notification for {snapshot['booking_ref']}: {e}")

    logger.info(f"📋 Post-commit processing for {snapshot['booking_ref']}: {results}")
    return results


async def process_status_changed(
    booking_id: int,
    session_factory: Callable = SessionLocal,
    notifier: Optional[EmailNotifier] = None,
) -> bool:
    """Email the customer about their booking's new status"""
    notifier = notifier or EmailNotifier()

    try:
        db = session_factory()
        try:
            booking = BookingRepository.get_by_id(db, booking_id)
            if not booking:
                logger.warning(f"⚠️ Booking {booking_id} vanished before status email")
                return False
            snapshot = booking_snapshot(booking)
        finally:
            db.close()
    except Exception as e:
        logger.error(f"❌ Failed to load booking {booking_id} for status email: {e}", exc_info=True)
        return False

    try:
        await notifier.notify_status_change(snapshot)
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send status update email for {snapshot['booking_ref']}: {e}")
        return False


RUNNERS = {
    "process_booking_created_task": process_booking_created,
    "process_status_changed_task": process_status_changed,
}


async def enqueue_or_run(task_name: str, booking_id: int) -> None:
    """
    Hand the job to ARQ; run it in-process only if the queue never accepted it.

    The pool is closed after every dispatch.
    """
    from arq import create_pool

    from ...worker import get_redis_settings

    try:
        pool = await create_pool(get_redis_settings())
    except Exception as e:
        logger.warning(f"⚠️ Redis unavailable for {task_name}, running in-process: {e}")
        await RUNNERS[task_name](booking_id)
        return

    try:
        try:
            job = await pool.enqueue_job(task_name, booking_id)
        except Exception as e:
            logger.warning(f"⚠️ Failed to queue {task_name}, running in-process: {e}")
            await RUNNERS[task_name](booking_id)
            return
        logger.info(f"📋 Queued {task_name} for booking {booking_id}: {job.job_id if job else 'duplicate'}")
    finally:
        try:
            await pool.aclose()
        except Exception as e:
            logger.warning(f"⚠️ Failed to close Redis pool: {e}")


class PostCommitDispatcher:
    """Schedules booking side effects; call only after the transaction has committed"""

    def __init__(self, background_tasks: BackgroundTasks, use_queue: Optional[bool] = None):
        self.background_tasks = background_tasks
        self.use_queue = bool(REDIS_URL) if use_queue is None else use_queue

    def _schedule(self, task_name: str, booking_id: int) -> None:
        if self.use_queue:
            self.background_tasks.add_task(enqueue_or_run, task_name, booking_id)
        else:
            self.background_tasks.add_task(RUNNERS[task_name], booking_id)

    def booking_created(self, booking_id: int) -> None:
        self._schedule("process_booking_created_task", booking_id)

    def status_changed(self, booking_id: int) -> None:
        self._schedule("process_status_changed_task", booking_id)
