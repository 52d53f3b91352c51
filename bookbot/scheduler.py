"""
Daily scheduling of the due-date sweep.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .sweeper import DueDateSweeper

logger = logging.getLogger(__name__)

JOB_ID = "due_book_check"


def start_scheduler(sweeper: DueDateSweeper, hour: int = 8) -> BackgroundScheduler:
    """
    Start a background scheduler running the sweep every day at `hour`:00 local time.

    Returns:
        The running scheduler; call shutdown() on it when the bot stops.
    """
    scheduler = BackgroundScheduler()

    def _job_wrapper():
        logger.info("Running scheduled check for due books")
        try:
            sweeper.sweep()
        except Exception:
            logger.exception("Scheduled check for due books failed")

    scheduler.add_job(
        func=_job_wrapper,
        trigger=CronTrigger(hour=hour, minute=0),
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )

    scheduler.start()
    logger.info(f"Scheduled daily check for due books at {hour:02d}:00")
    return scheduler
