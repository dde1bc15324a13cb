from __future__ import annotations

from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import aiosmtplib
from loguru import logger

from unihaven.config import Settings, get_settings


class EmailSender:
    """Send notification emails over SMTP."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings if settings is not None else get_settings()
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_user
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.start_tls = settings.smtp_start_tls
        self.timeout = settings.smtp_timeout
        self.sender = settings.email_sender
        self.sender_name = settings.email_sender_name

    def is_configured(self) -> bool:
        """Check if an SMTP host and a From address are set."""
        return bool(self.host and self.sender)

    def build_message(
        self,
        recipient: str,
        subject: str,
        display_name: Optional[str],
        html: str,
        text: str = "",
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.sender))
        message["To"] = formataddr((display_name or "", recipient))
        # Header values may not span lines
        message["Subject"] = " ".join(subject.split())
        message.set_content(text or subject)
        message.add_alternative(html, subtype="html")
        return message

    async def send(
        self,
        recipient: str,
        subject: str,
        display_name: Optional[str],
        html: str,
        text: str = "",
    ) -> bool:
        """Hand one email to the SMTP server.

        No retry: a failed send is logged and reported as not accepted.

        Returns:
            True if the server accepted the recipient, False otherwise.
        """
        message = self.build_message(recipient, subject, display_name, html, text)

        try:
            errors, response = await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                use_tls=self.use_tls,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP send to {recipient} failed: {type(e).__name__}: {e}")
            return False

        if recipient in errors:
            logger.error(f"SMTP server refused {recipient}: {errors[recipient]}")
            return False

        logger.info(f"Email '{subject}' sent to {recipient}")
        return True
