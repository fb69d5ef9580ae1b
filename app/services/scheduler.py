"""
Background Job Scheduler.

WHAT: Configures APScheduler for the daily reminder scan.

WHY: Reminders must go out on cadence days without anyone hitting the
API. The scan itself decides whether today is a reminder day, so the
job simply runs once a day.

HOW: AsyncIOScheduler with an in-memory job store and a CronTrigger at
REMINDER_SCAN_HOUR:REMINDER_SCAN_MINUTE in REMINDER_TIMEZONE. The
scheduler is owned by the application (app.state.scheduler), not a
module global.

Example:
    scheduler = start_scheduler(reminder_service)
    app.state.scheduler = scheduler
    ...
    shutdown_scheduler(scheduler)
"""

import logging
from typing import Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.services.reminder_service import ReminderService

logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "reminder_scan"


def create_scheduler() -> AsyncIOScheduler:
    """Build an unstarted scheduler with the job defaults we rely on."""
    job_defaults = {
        "coalesce": True,  # Combine missed runs into one
        "max_instances": 1,
        "misfire_grace_time": 60,
    }
    return AsyncIOScheduler(
        jobstores={"default": MemoryJobStore()},
        executors={"default": AsyncIOExecutor()},
        job_defaults=job_defaults,
        timezone=settings.REMINDER_TIMEZONE,
    )


def register_reminder_job(
    scheduler: AsyncIOScheduler,
    reminder_service: ReminderService,
) -> None:
    """Schedule the daily reminder scan."""
    trigger = CronTrigger(
        hour=settings.REMINDER_SCAN_HOUR,
        minute=settings.REMINDER_SCAN_MINUTE,
        timezone=settings.REMINDER_TIMEZONE,
    )
    scheduler.add_job(
        func=reminder_service.run_scheduled_scan,
        trigger=trigger,
        id=REMINDER_JOB_ID,
        name="Invoice Reminder Scan",
        replace_existing=True,
    )
    logger.info(
        f"Registered reminder scan job (daily at "
        f"{settings.REMINDER_SCAN_HOUR:02d}:{settings.REMINDER_SCAN_MINUTE:02d} "
        f"{settings.REMINDER_TIMEZONE})"
    )


def start_scheduler(reminder_service: ReminderService) -> AsyncIOScheduler:
    """
    Create, populate and start the scheduler.

    Must be called with a running event loop (FastAPI startup).
    """
    scheduler = create_scheduler()
    register_reminder_job(scheduler, reminder_service)
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler


def shutdown_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    """Stop the scheduler, letting a running scan finish."""
    if scheduler is None or not scheduler.running:
        logger.info("Scheduler not running")
        return

    logger.info("Shutting down scheduler...")
    scheduler.shutdown(wait=True)
    logger.info("Scheduler shut down successfully")


def get_scheduler_status(scheduler: Optional[AsyncIOScheduler]) -> dict:
    """
    Scheduler state and job info for the health check.

    Returns:
        {"running", "jobs", "message"}
    """
    if scheduler is None:
        return {
            "running": False,
            "jobs": [],
            "message": "Scheduler not initialized",
        }

    jobs = []
    for job in scheduler.get_jobs():
        next_run = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": str(next_run) if next_run else None,
            "trigger": str(job.trigger),
        })

    return {
        "running": scheduler.running,
        "jobs": jobs,
        "message": "Scheduler is running" if scheduler.running else "Scheduler is paused",
    }
