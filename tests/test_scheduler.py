import unittest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from apscheduler.triggers.cron import CronTrigger

import scheduler
from scheduler import ReminderScheduler, scheduler_timezone


class TestReminderScheduler(unittest.TestCase):
    def setUp(self):
        self.session_factory = MagicMock()
        self.mailer = MagicMock()
        self.backend = MagicMock()
        self.backend.running = True
        self.scheduler = ReminderScheduler(
            self.session_factory, self.mailer, "bot@example.com", scheduler=self.backend
        )

    def test_start_registers_every_minute_job(self):
        self.scheduler.start()

        args, kwargs = self.backend.add_job.call_args
        self.assertEqual(args[0], self.scheduler.tick)
        self.assertEqual(args[1], "cron")
        self.assertEqual(kwargs["minute"], "*")
        self.assertEqual(kwargs["max_instances"], 1)
        self.assertTrue(kwargs["coalesce"])
        self.assertEqual(kwargs["misfire_grace_time"], ReminderScheduler.MISFIRE_GRACE_SECONDS)
        self.backend.start.assert_called_once()

    def test_shutdown_does_not_wait_for_running_tick(self):
        self.scheduler.shutdown()
        self.backend.shutdown.assert_called_once_with(wait=False)

    def test_shutdown_when_not_running(self):
        self.backend.running = False
        self.scheduler.shutdown()
        self.backend.shutdown.assert_not_called()

    @patch("scheduler.run_reminder_tick")
    @patch("scheduler.current_instant")
    def test_tick_runs_reminders_for_current_instant(self, mock_now, mock_run):
        instant = datetime(2024, 3, 15, 20, 0)
        mock_now.return_value = instant
        mock_run.return_value = {"expense": 0, "trutime": 0, "weekly": 0}

        result = self.scheduler.tick()

        mock_run.assert_called_once_with(
            self.session_factory, self.mailer, "bot@example.com", now=instant
        )
        self.assertEqual(result, mock_run.return_value)


class TestDefaultBackend(unittest.TestCase):
    def test_cron_job_fires_each_minute(self):
        reminder_scheduler = ReminderScheduler(MagicMock(), MagicMock(), "bot@example.com")
        backend = reminder_scheduler.scheduler
        backend.add_job(reminder_scheduler.tick, "cron", minute="*", id=ReminderScheduler.JOB_ID)

        job = backend.get_job(ReminderScheduler.JOB_ID)
        self.assertIsInstance(job.trigger, CronTrigger)
        self.assertFalse(backend.running)


class TestSchedulerTimezone(unittest.TestCase):
    def test_configured_zone_passed_as_tzinfo(self):
        with patch.object(scheduler.config, "REMINDER_TIMEZONE", "Asia/Kolkata"):
            reminder_scheduler = ReminderScheduler(MagicMock(), MagicMock(), "bot@example.com")
        offset = reminder_scheduler.scheduler.timezone.utcoffset(datetime(2024, 3, 15, 20, 0))
        self.assertEqual(offset, timedelta(hours=5, minutes=30))

    def test_unset_zone_left_to_local_time(self):
        with patch.object(scheduler.config, "REMINDER_TIMEZONE", ""):
            self.assertIsNone(scheduler_timezone())

    def test_unknown_zone_fails_at_construction(self):
        with patch.object(scheduler.config, "REMINDER_TIMEZONE", "Not/AZone"):
            with self.assertRaises(ValueError):
                ReminderScheduler(MagicMock(), MagicMock(), "bot@example.com")

    def test_misfire_grace_stays_within_the_minute(self):
        self.assertLess(ReminderScheduler.MISFIRE_GRACE_SECONDS, 60)


if __name__ == "__main__":
    unittest.main()
