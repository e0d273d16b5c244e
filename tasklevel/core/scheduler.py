"""Scheduler for deferred notifications and periodic reminder jobs."""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from tasklevel.core import db_client
from tasklevel.core.clock import ensure_utc, parse_iso, to_iso, utc_now
from tasklevel.core.config import settings
from tasklevel.core.scheduler_tracker import run_tracked_job
from tasklevel.domain.task_list import TaskList
from tasklevel.models.service_models import ScheduledNotification
from tasklevel.services import notification_service


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()

EXPIRING_REMINDERS_JOB = "expiring_list_reminders"
TRACKED_JOBS = [EXPIRING_REMINDERS_JOB]


class DelayedJobScheduler(Protocol):
    """Anything that can run a notification job at a later instant."""

    def schedule(self, *, run_at: datetime, job: ScheduledNotification) -> str:
        """Register ``job`` to run at ``run_at`` and return its id."""
        ...


async def deliver_scheduled_notification(job: ScheduledNotification) -> None:
    """Send a deferred notification; delivery problems are logged by the notifier."""
    await notification_service.notify(target_profile_id=job.profile_id, payload=job.payload)


class APSchedulerJobs:
    """DelayedJobScheduler backed by one-shot APScheduler date jobs."""

    def __init__(self, backend: AsyncIOScheduler) -> None:
        self._backend = backend

    def schedule(self, *, run_at: datetime, job: ScheduledNotification) -> str:
        job_id = f"notify:{job.payload.tag}:{uuid.uuid4()}"
        self._backend.add_job(
            deliver_scheduled_notification,
            trigger=DateTrigger(run_date=ensure_utc(run_at)),
            args=[job],
            id=job_id,
            name=f"Deferred {job.payload.tag} notification",
            replace_existing=True,
        )
        logger.info("Scheduled %s notification for profile=%s at %s", job.payload.tag, job.profile_id, run_at)
        return job_id


delayed_jobs: DelayedJobScheduler = APSchedulerJobs(scheduler)


async def _open_lists_expiring_between(start: datetime, end: datetime) -> list[TaskList]:
    records = await db_client.list_all_records(
        collection="lists",
        filter_query=f'is_completed = "false" && expires_at > "{to_iso(start)}" && expires_at <= "{to_iso(end)}"',
        sort="+expires_at",
    )
    return [TaskList(**record) for record in records]


async def send_expiring_list_reminders(now: datetime | None = None) -> None:
    """Remind owners about lists that are about to expire or just expired.

    Runs hourly. A list is picked up once when it enters the last
    ``expiring_reminder_hours`` before its deadline, and once more during the
    hour after it expired uncompleted.
    """
    now = ensure_utc(now or utc_now())
    window = timedelta(hours=settings.expiring_reminder_hours)
    hour = timedelta(hours=1)

    expiring = await _open_lists_expiring_between(now + window - hour, now + window)
    for task_list in expiring:
        remaining = parse_iso(task_list.expires_at) - now
        hours_left = max(1, math.ceil(remaining.total_seconds() / 3600))
        await notification_service.notify(
            target_profile_id=task_list.user_id,
            payload=notification_service.list_expiring(
                list_title=task_list.title, hours_left=hours_left, list_id=task_list.id
            ),
        )

    expired = await _open_lists_expiring_between(now - hour, now)
    for task_list in expired:
        await notification_service.notify(
            target_profile_id=task_list.user_id,
            payload=notification_service.list_expired(list_title=task_list.title, list_id=task_list.id),
        )

    logger.info("Expiring list reminders: %d expiring, %d expired", len(expiring), len(expired))


def start_scheduler() -> None:
    """Start the scheduler and register all periodic jobs.

    This should be called during FastAPI app startup.
    """
    logger.info("Starting scheduler")

    if settings.enable_expiring_reminders:
        scheduler.add_job(
            run_tracked_job,
            trigger=CronTrigger(hour="*", minute=0),  # Every hour at minute 0
            args=[send_expiring_list_reminders, EXPIRING_REMINDERS_JOB],
            id=EXPIRING_REMINDERS_JOB,
            name="Send Expiring List Reminders",
            replace_existing=True,
        )
        logger.info("Scheduled expiring list reminders job: hourly")

    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler.

    This should be called during FastAPI app shutdown.
    """
    logger.info("Stopping scheduler")
    scheduler.shutdown(wait=True)
    logger.info("Scheduler stopped")
