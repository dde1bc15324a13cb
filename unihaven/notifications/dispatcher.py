from __future__ import annotations

from typing import Dict, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from unihaven.config import Settings, get_settings
from unihaven.models.notification_log import (
    NotificationChannel,
    NotificationLog,
    NotificationType,
)
from unihaven.notifications.email import EmailSender


class NotificationDispatcher:
    """Best-effort email delivery with an audit log.

    Nothing raised by the transport escapes ``dispatch``; callers have already
    committed the state change a notification describes.
    """

    def __init__(
        self,
        session: AsyncSession,
        sender: Optional[EmailSender] = None,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.settings = settings if settings is not None else get_settings()
        self.sender = sender if sender is not None else EmailSender(self.settings)

    async def _log_sent(
        self,
        notification_type: NotificationType,
        reference_id: int,
        recipient: str,
    ) -> None:
        """Record that a notification was accepted by the transport."""
        log = NotificationLog(
            notification_type=notification_type,
            reference_id=reference_id,
            channel=NotificationChannel.email,
            recipient=recipient,
        )
        self.session.add(log)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Could not record {notification_type.value} ref={reference_id}: {e}"
            )

    async def dispatch(
        self,
        notification_type: NotificationType,
        reference_id: int,
        recipient: Optional[str],
        display_name: Optional[str],
        message: Dict[str, str],
    ) -> bool:
        """Send one notification email.

        Args:
            notification_type: Kind of notification (ad_expired, etc.).
            reference_id: ID of the user or ad the notification is about.
            recipient: Email address; empty means nobody to notify.
            display_name: Name used in the To header.
            message: Dict with "subject", "html" and "text" keys.

        Returns:
            True if the transport accepted the email, False otherwise.
        """
        if not self.settings.notification_enabled:
            logger.info("Notifications are disabled, skipping dispatch")
            return False

        if not recipient:
            logger.info(
                f"No email address for {notification_type.value} ref={reference_id}, skipping"
            )
            return False

        if not self.sender.is_configured():
            logger.warning(
                f"Email transport not configured, dropping {notification_type.value} "
                f"ref={reference_id}"
            )
            return False

        try:
            accepted = await self.sender.send(
                recipient,
                message["subject"],
                display_name,
                message["html"],
                message.get("text", ""),
            )
        except Exception as e:
            logger.error(
                f"Email: failed to send {notification_type.value} ref={reference_id} "
                f"to {recipient}: {e}"
            )
            return False

        if not accepted:
            logger.error(
                f"Email: {notification_type.value} ref={reference_id} not accepted for {recipient}"
            )
            return False

        await self._log_sent(notification_type, reference_id, recipient)
        logger.info(f"Email: sent {notification_type.value} ref={reference_id} to {recipient}")
        return True
