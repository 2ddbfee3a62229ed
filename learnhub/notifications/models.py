"""Database models for learner notifications.

Cassandra table definitions for:
- Notifications: per-user feed, newest first

Notification types:
- COURSE_ENROLLMENT: User was enrolled in a course
- ACHIEVEMENT_UNLOCKED: User earned an achievement
- SYSTEM: System-wide announcement
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class NotificationType(str, Enum):
    """Types of notifications."""

    COURSE_ENROLLMENT = "course_enrollment"
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    SYSTEM = "system"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partitioned by user_id for efficient feed queries
NOTIFICATION_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.notifications (
    user_id UUID,
    notification_id UUID,
    type TEXT,
    title TEXT,
    message TEXT,
    reference_id UUID,
    reference_type TEXT,
    data TEXT,
    is_read BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), created_at, notification_id)
) WITH CLUSTERING ORDER BY (created_at DESC, notification_id ASC)
"""

NOTIFICATIONS_TABLES_CQL = [
    NOTIFICATION_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Notification:
    """Notification entity."""

    user_id: UUID
    type: NotificationType
    title: str
    message: str
    reference_id: UUID | None = None
    reference_type: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    notification_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "Notification":
        """Create Notification from Cassandra row."""
        return cls(
            notification_id=row.notification_id,
            user_id=row.user_id,
            type=NotificationType(row.type),
            title=row.title,
            message=row.message,
            reference_id=row.reference_id,
            reference_type=row.reference_type,
            data=json.loads(row.data) if row.data else {},
            is_read=row.is_read or False,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": str(self.notification_id),
            "user_id": str(self.user_id),
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "reference_id": str(self.reference_id) if self.reference_id else None,
            "reference_type": self.reference_type,
            "data": self.data,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_enrollment_notification(
    user_id: UUID, course_id: UUID, course_title: str
) -> Notification:
    """Create a notification for a new course enrollment."""
    return Notification(
        user_id=user_id,
        type=NotificationType.COURSE_ENROLLMENT,
        title="Course Enrollment",
        message=f'You have successfully enrolled in the course "{course_title}"',
        reference_id=course_id,
        reference_type="course",
        data={"course_id": str(course_id)},
    )


def create_achievement_notification(
    user_id: UUID, achievement_id: UUID, achievement_name: str, points: int
) -> Notification:
    """Create a notification for an unlocked achievement."""
    return Notification(
        user_id=user_id,
        type=NotificationType.ACHIEVEMENT_UNLOCKED,
        title="Achievement Unlocked",
        message=f'You earned "{achievement_name}"',
        reference_id=achievement_id,
        reference_type="achievement",
        data={"achievement_id": str(achievement_id), "points": points},
    )
