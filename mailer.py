"""
Outbound mail transports used by the reminder dispatcher.

Both transports expose ``send(sender, recipient, subject, body) -> bool``.
``SMTPMailer`` delivers through an SMTP relay (STARTTLS + login, Gmail
defaults) and lets ``smtplib`` errors propagate to the caller.
``LogMailer`` only writes the message to the log and is used when no SMTP
credentials are configured.
"""

import logging
import smtplib
from email.message import EmailMessage

import config

logger = logging.getLogger(__name__)


class SMTPMailer:
    def __init__(self, host, port, username, password, timeout=30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.timeout = timeout

    def send(self, sender: str, recipient: str, subject: str, body: str) -> bool:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = recipient
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.send_message(msg)

        logger.info("Mail sent to %s: %s", recipient, subject)
        return True


class LogMailer:
    def send(self, sender: str, recipient: str, subject: str, body: str) -> bool:
        logger.info("Mail (not delivered) from %s to %s: %s\n%s", sender, recipient, subject, body)
        return True


def build_mailer():
    """Return the transport matching the current mail configuration."""
    if config.EMAIL_USER and config.EMAIL_PASS:
        return SMTPMailer(
            config.SMTP_HOST, config.SMTP_PORT, config.EMAIL_USER, config.EMAIL_PASS
        )
    logger.warning("SMTP not configured (set EMAIL_USER and EMAIL_PASS); reminders will only be logged")
    return LogMailer()
