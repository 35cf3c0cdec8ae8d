"""
Email Dispatcher

Best-effort SMTP delivery. send() raises EmailDeliveryError on any
transport problem; callers catch it, log it and record the failure
on the reminder log instead of propagating it.
"""

import smtplib
from email.message import EmailMessage
from typing import Optional

from loguru import logger

from egs_bridge.core.config import Settings, get_settings
from egs_bridge.core.errors import EmailDeliveryError


class EmailDispatcher:
    """
    Thin SMTP wrapper configured from Settings.
    One connection per message keeps it safe to call from worker threads.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return self.settings.email_configured

    def _build_message(self, to_address: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.email_from or self.settings.smtp_user
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, to_address: str, subject: str, body: str) -> bool:
        """
        Send a plain-text email.

        Returns:
            True when the SMTP server accepted the message

        Raises:
            EmailDeliveryError: not configured, or the transport failed
        """
        if not self.is_configured:
            raise EmailDeliveryError("Email transport is not configured", error_code="EMAIL_NOT_CONFIGURED")

        message = self._build_message(to_address, subject, body)
        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.email_timeout_seconds
            ) as smtp:
                if self.settings.smtp_use_tls:
                    smtp.starttls()
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_address}: {e}")
            raise EmailDeliveryError(f"Failed to send email to {to_address}: {e}")

        logger.info(f"Email sent to {to_address}")
        return True


# Singleton instance
_email_dispatcher: EmailDispatcher = None


def get_email_dispatcher() -> EmailDispatcher:
    """Get or create the email dispatcher (singleton pattern)."""
    global _email_dispatcher
    if _email_dispatcher is None:
        _email_dispatcher = EmailDispatcher()
    return _email_dispatcher
