from unihaven.models.ad import Ad, AdType
from unihaven.models.advertiser import Advertiser
from unihaven.models.notification_log import (
    NotificationChannel,
    NotificationLog,
    NotificationType,
)
from unihaven.models.user import User, UserRole

__all__ = [
    "Ad",
    "AdType",
    "Advertiser",
    "NotificationChannel",
    "NotificationLog",
    "NotificationType",
    "User",
    "UserRole",
]
