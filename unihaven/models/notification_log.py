from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from unihaven.db.database import Base
from unihaven.models.base import utcnow


class NotificationType(enum.Enum):
    account_suspended = "account_suspended"
    account_reinstated = "account_reinstated"
    ad_expiring = "ad_expiring"
    ad_expired = "ad_expired"


class NotificationChannel(enum.Enum):
    email = "email"


class NotificationLog(Base):
    """Audit trail of accepted notifications.

    Not unique per (type, reference): expiring-ad reminders repeat daily and a
    user can be suspended and reinstated more than once.
    """

    __tablename__ = "notification_logs"
    __table_args__ = (
        Index("ix_notification_logs_reference", "notification_type", "reference_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType), nullable=False
    )
    reference_id: Mapped[int] = mapped_column(Integer, nullable=False)
    channel: Mapped[NotificationChannel] = mapped_column(
        Enum(NotificationChannel), nullable=False
    )
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<NotificationLog {self.notification_type.value} "
            f"ref={self.reference_id} via {self.channel.value}>"
        )
