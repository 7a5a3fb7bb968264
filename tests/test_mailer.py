import smtplib
import unittest
from unittest.mock import MagicMock, patch

import mailer


class TestSMTPMailer(unittest.TestCase):
    @patch("mailer.smtplib.SMTP")
    def test_send_uses_starttls_and_login(self, mock_smtp):
        server = MagicMock()
        mock_smtp.return_value.__enter__.return_value = server

        transport = mailer.SMTPMailer("smtp.example.com", 587, "bot@example.com", "pw")
        result = transport.send("bot@example.com", "a@example.com", "Subject", "Body text")

        self.assertTrue(result)
        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "pw")

        msg = server.send_message.call_args.args[0]
        self.assertEqual(msg["From"], "bot@example.com")
        self.assertEqual(msg["To"], "a@example.com")
        self.assertEqual(msg["Subject"], "Subject")
        self.assertIn("Body text", msg.get_content())

    @patch("mailer.smtplib.SMTP")
    def test_send_propagates_transport_errors(self, mock_smtp):
        server = MagicMock()
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        mock_smtp.return_value.__enter__.return_value = server

        transport = mailer.SMTPMailer("smtp.example.com", 587, "bot@example.com", "wrong")
        with self.assertRaises(smtplib.SMTPAuthenticationError):
            transport.send("bot@example.com", "a@example.com", "Subject", "Body")
        server.send_message.assert_not_called()


class TestLogMailer(unittest.TestCase):
    def test_send_logs_and_succeeds(self):
        with self.assertLogs("mailer", level="INFO") as logs:
            self.assertTrue(mailer.LogMailer().send("bot@example.com", "a@example.com", "Hi", "Body"))
        self.assertIn("a@example.com", logs.output[0])


class TestBuildMailer(unittest.TestCase):
    def test_smtp_when_credentials_configured(self):
        with patch.multiple("mailer.config", EMAIL_USER="bot@example.com", EMAIL_PASS="pw"):
            transport = mailer.build_mailer()
        self.assertIsInstance(transport, mailer.SMTPMailer)
        self.assertEqual(transport.username, "bot@example.com")

    def test_log_mailer_without_credentials(self):
        with patch.multiple("mailer.config", EMAIL_USER="", EMAIL_PASS=""):
            with self.assertLogs("mailer", level="WARNING"):
                transport = mailer.build_mailer()
        self.assertIsInstance(transport, mailer.LogMailer)


if __name__ == "__main__":
    unittest.main()
