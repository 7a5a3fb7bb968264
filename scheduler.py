import logging

from apscheduler.schedulers.background import BackgroundScheduler

import config
from reminders import run_reminder_tick, current_instant, reference_timezone

logger = logging.getLogger(__name__)


def scheduler_timezone():
    """Reminder timezone as a tzinfo, or None to let APScheduler use local time."""
    zone = reference_timezone()
    return zone if config.REMINDER_TIMEZONE else None


class ReminderScheduler:
    """
    Owns the per-minute reminder job.

    The job fires on every wall-clock minute. A tick that would overlap a
    still-running one is skipped (max_instances=1) and missed minutes are
    never replayed (coalesce, short misfire grace time).
    """

    JOB_ID = "reminder_tick"
    MISFIRE_GRACE_SECONDS = 30

    def __init__(self, session_factory, mailer, sender, scheduler=None):
        self.session_factory = session_factory
        self.mailer = mailer
        self.sender = sender
        self.scheduler = scheduler or BackgroundScheduler(timezone=scheduler_timezone())

    def tick(self):
        # Slots are matched against the time the handler runs, not the
        # scheduled fire time. MISFIRE_GRACE_SECONDS must stay under a minute so
        # a late start still lands in the minute it was scheduled for.
        return run_reminder_tick(
            self.session_factory, self.mailer, self.sender, now=current_instant()
        )

    def start(self):
        self.scheduler.add_job(
            self.tick,
            "cron",
            minute="*",
            id=self.JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.MISFIRE_GRACE_SECONDS,
        )
        self.scheduler.start()
        logger.info("Reminder scheduler started")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Reminder scheduler stopped")
