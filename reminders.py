"""
Reminder matching and dispatch.

Every tick derives the weekday name, the HH:MM time and the calendar date
from a single instant, finds the users whose stored reminder slots equal
those values, and mails each of them a fixed-template message. Slots are
compared as plain strings, so a value such as "0:00" or "24:00" never
matches any tick.

Three categories are handled in a fixed order and independently of each
other: daily expense, daily TruTime and weekly worksheet.
"""

import logging
from collections import namedtuple
from datetime import datetime

from dateutil import tz
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import config
from database import User, Transaction

logger = logging.getLogger(__name__)

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

SIGNATURE = "Best regards,\nFinTasker Team"

TickContext = namedtuple("TickContext", ["current_day", "current_time", "today"])


def reference_timezone(name=None):
    """Timezone every reminder slot is interpreted in (server local when unset)."""
    name = config.REMINDER_TIMEZONE if name is None else name
    zone = tz.gettz(name or None)
    if zone is None:
        raise ValueError(f"Unknown reminder timezone: {name}")
    return zone


def current_instant():
    return datetime.now(reference_timezone())


def tick_context(now: datetime) -> TickContext:
    return TickContext(
        current_day=WEEKDAYS[now.weekday()],
        current_time=now.strftime("%H:%M"),
        today=now.strftime("%Y-%m-%d"),
    )


# --- Matching rules ---


def find_expense_reminder_users(db: Session, ctx: TickContext):
    return (
        db.query(User)
        .filter(User.daily_expense_reminder_time == ctx.current_time)
        .all()
    )


def find_trutime_reminder_users(db: Session, ctx: TickContext):
    return (
        db.query(User)
        .filter(
            User.daily_trutime_reminder_time == ctx.current_time,
            User.enable_trutime_reminder.is_(True),
        )
        .all()
    )


def find_weekly_reminder_users(db: Session, ctx: TickContext):
    return (
        db.query(User)
        .filter(
            User.weekly_reminder_day == ctx.current_day,
            User.weekly_reminder_time == ctx.current_time,
            User.enable_weekly_worksheet_reminder.is_(True),
        )
        .all()
    )


def count_expenses_on(db: Session, user_id: int, day: str) -> int:
    return (
        db.query(Transaction)
        .filter(
            Transaction.user_id == user_id,
            Transaction.type == "expense",
            Transaction.date == day,
        )
        .count()
    )


# --- Message templates ---


def expense_reminder_message(user):
    subject = "Smart Finance Reminder: Update Your Expenses"
    body = (
        f"Hi {user.name},\n\n"
        "If you want to add any expenses for today, please update them in the app "
        "to keep your tracking accurate, otherwise ignore this mail.\n\n"
        f"{SIGNATURE}"
    )
    return subject, body


def trutime_reminder_message(user):
    subject = "Work Reminder: TruTime Update"
    body = (
        f"Hi {user.name},\n\n"
        "This is a friendly reminder to update today's TruTime in the "
        "OneCognizant portal.\n\n"
        f"{SIGNATURE}"
    )
    return subject, body


def weekly_reminder_message(user):
    subject = "Work Reminder: Weekly Worksheet"
    body = (
        f"Hi {user.name},\n\n"
        "It's time to update your weekly worksheet in the OneCognizant portal.\n\n"
        f"{SIGNATURE}"
    )
    return subject, body


# --- Dispatch ---


def send_reminder(mailer, sender, user, compose, category) -> bool:
    """Send one reminder; failures are logged and reported as False."""
    subject, body = compose(user)
    try:
        sent = mailer.send(sender, user.email, subject, body)
    except Exception:
        logger.exception("Failed to send %s reminder to user %s", category, user.id)
        return False
    if not sent:
        logger.error("Mail transport rejected %s reminder for user %s", category, user.id)
        return False
    return True


def dispatch(mailer, sender, users, compose, category) -> int:
    sent = 0
    for user in users:
        if send_reminder(mailer, sender, user, compose, category):
            sent += 1
    return sent


def _expense_category(db, ctx, mailer, sender):
    users = find_expense_reminder_users(db, ctx)
    sent = 0
    for user in users:
        # Looked up for visibility only; the reminder goes out either way.
        logged = count_expenses_on(db, user.id, ctx.today)
        logger.debug("User %s has %d expense(s) logged on %s", user.id, logged, ctx.today)
        if send_reminder(mailer, sender, user, expense_reminder_message, "expense"):
            sent += 1
    return sent


def _trutime_category(db, ctx, mailer, sender):
    users = find_trutime_reminder_users(db, ctx)
    return dispatch(mailer, sender, users, trutime_reminder_message, "trutime")


def _weekly_category(db, ctx, mailer, sender):
    users = find_weekly_reminder_users(db, ctx)
    return dispatch(mailer, sender, users, weekly_reminder_message, "weekly")


CATEGORIES = (
    ("expense", _expense_category),
    ("trutime", _trutime_category),
    ("weekly", _weekly_category),
)


def run_reminder_tick(session_factory, mailer, sender, now=None):
    """
    Process one tick.

    Returns a dict of category -> number of reminders sent, or None for a
    category whose store query failed. Store and mail failures are logged,
    not raised.
    """
    now = now or current_instant()
    ctx = tick_context(now)
    results = {}

    with session_factory() as db:
        for category, handler in CATEGORIES:
            try:
                results[category] = handler(db, ctx, mailer, sender)
            except SQLAlchemyError:
                logger.exception("Store query failed for %s reminders at %s", category, ctx.current_time)
                db.rollback()
                results[category] = None

    logger.info(
        "Reminder tick %s %s %s: %s", ctx.today, ctx.current_day, ctx.current_time, results
    )
    return results
