"""Notifications module for learner notifications.

Provides:
- Notification persistence
- Real-time fan-out over Redis Pub/Sub
"""

from learnhub.notifications.models import (
    NOTIFICATIONS_TABLES_CQL,
    Notification,
    NotificationType,
)
from learnhub.notifications.service import NotificationService


__all__ = [
    "NOTIFICATIONS_TABLES_CQL",
    "Notification",
    "NotificationService",
    "NotificationType",
]
