# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Notification service layer.

Persists learner notifications and fans them out over Redis Pub/Sub for
real-time delivery. Callers in the progression and achievement engines
treat notification as best effort.
"""

import contextlib
import json
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.core.redis import notification_channel

from .models import (
    Notification,
    create_achievement_notification,
    create_enrollment_notification,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis

logger = structlog.get_logger(__name__)


class NotificationService:
    """Service for notification delivery."""

    def __init__(self, session: "Session", keyspace: str, redis: "Redis | None" = None):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_notification = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.notifications
            (user_id, notification_id, type, title, message, reference_id,
             reference_type, data, is_read, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

    async def create_notification(self, notification: Notification) -> Notification:
        """Store a notification and publish it."""
        await self.session.aexecute(
            self._insert_notification,
            [
                notification.user_id,
                notification.notification_id,
                notification.type.value,
                notification.title,
                notification.message,
                notification.reference_id,
                notification.reference_type,
                json.dumps(notification.data),
                notification.is_read,
                notification.created_at,
            ],
        )

        logger.info(
            "notification_created",
            user_id=str(notification.user_id),
            type=notification.type.value,
        )

        await self._publish_notification(notification)
        return notification

    async def _publish_notification(self, notification: Notification) -> None:
        """Publish notification to Redis Pub/Sub for real-time delivery."""
        if not self.redis:
            return

        message = {"type": "notification", "data": notification.to_dict()}

        # Non-critical: don't fail notification creation if Redis publish fails
        with contextlib.suppress(Exception):
            await self.redis.publish(
                notification_channel(str(notification.user_id)), json.dumps(message)
            )

    async def notify_course_enrollment(
        self, user_id: UUID, course_id: UUID, course_title: str
    ) -> Notification:
        """Tell a learner they were enrolled in a course."""
        notification = create_enrollment_notification(user_id, course_id, course_title)
        return await self.create_notification(notification)

    async def notify_achievement_unlocked(
        self, user_id: UUID, achievement_id: UUID, achievement_name: str, points: int
    ) -> Notification:
        """Tell a learner they earned an achievement."""
        notification = create_achievement_notification(
            user_id, achievement_id, achievement_name, points
        )
        return await self.create_notification(notification)
