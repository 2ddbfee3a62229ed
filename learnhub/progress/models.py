"""Database models for course enrollment and chapter progression.

Cassandra table definitions for:
- Enrollments: one document row per (course, user), with the chapter
  progression embedded as JSON and a revision counter for
  compare-and-set saves
- Content completions: completed items per (user, community, content type),
  the aggregate queried by achievement criteria
"""

import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class ChapterState(str, Enum):
    """Chapter progress state."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"  # Terminal


class ContentType(str, Enum):
    """Trackable content types counted by achievement criteria."""

    COURSE = "course"
    CHALLENGE = "challenge"
    SESSION = "session"
    EVENT = "event"
    PRODUCT = "product"
    POST = "post"


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def _parse_datetime(value: str | None) -> datetime | None:
    return ensure_utc_aware(datetime.fromisoformat(value)) if value else None


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition key: course_id, clustering: user_id
# At most one row per (course, user); completion flips is_active off
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    user_id UUID,
    id UUID,
    progression TEXT,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    is_active BOOLEAN,
    revision INT,
    PRIMARY KEY (course_id, user_id)
)
"""

CONTENT_COMPLETIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.content_completions (
    user_id UUID,
    community_id UUID,
    content_type TEXT,
    content_id TEXT,
    completed_at TIMESTAMP,
    PRIMARY KEY ((user_id, community_id), content_type, content_id)
)
"""

PROGRESS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    CONTENT_COMPLETIONS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class ChapterProgress:
    """Progress of one chapter inside an enrollment.

    Invariant: ``completed_at`` is set if and only if ``is_completed``.

    Attributes:
        id: Progress record UUID
        enrollment_id: Owning enrollment UUID
        chapter_id: Chapter identifier from the course document
        is_completed: Completion flag (terminal once True)
        watch_time: Seconds watched, last write wins
        completed_at: Completion timestamp
        last_accessed_at: Last access timestamp
        created_at: Creation timestamp
        updated_at: Last modification timestamp
    """

    def __init__(
        self,
        enrollment_id: UUID,
        chapter_id: str,
        id: UUID | None = None,
        is_completed: bool = False,
        watch_time: float = 0,
        completed_at: datetime | None = None,
        last_accessed_at: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        now = datetime.now(UTC)
        self.id = id or uuid4()
        self.enrollment_id = enrollment_id
        self.chapter_id = chapter_id
        self.is_completed = is_completed
        self.watch_time = watch_time
        self.completed_at = ensure_utc_aware(completed_at)
        self.last_accessed_at = ensure_utc_aware(last_accessed_at) or now
        self.created_at = ensure_utc_aware(created_at) or now
        self.updated_at = ensure_utc_aware(updated_at) or now

        # completed_at is set if and only if is_completed
        if not self.is_completed:
            self.completed_at = None
        elif self.completed_at is None:
            self.completed_at = self.updated_at

    @property
    def state(self) -> ChapterState:
        """Current state; a record only exists once a chapter was opened."""
        if self.is_completed:
            return ChapterState.COMPLETED
        return ChapterState.IN_PROGRESS

    def mark_completed(self, now: datetime) -> None:
        """Complete the chapter, keeping the first completion timestamp."""
        if not self.is_completed:
            self.is_completed = True
            self.completed_at = now
        self.updated_at = now

    def touch(self, now: datetime, watch_time: float | None = None) -> None:
        """Record an access, overwriting watch time only when given."""
        self.last_accessed_at = now
        if watch_time is not None:
            self.watch_time = watch_time
        self.updated_at = now

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChapterProgress":
        """Create ChapterProgress from its embedded JSON form."""
        return cls(
            id=UUID(data["id"]),
            enrollment_id=UUID(data["enrollment_id"]),
            chapter_id=data["chapter_id"],
            is_completed=bool(data.get("is_completed", False)),
            watch_time=data.get("watch_time", 0) or 0,
            completed_at=_parse_datetime(data.get("completed_at")),
            last_accessed_at=_parse_datetime(data.get("last_accessed_at")),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the embedded JSON form."""
        return {
            "id": str(self.id),
            "enrollment_id": str(self.enrollment_id),
            "chapter_id": self.chapter_id,
            "is_completed": self.is_completed,
            "watch_time": self.watch_time,
            "completed_at": _format_datetime(self.completed_at),
            "last_accessed_at": _format_datetime(self.last_accessed_at),
            "created_at": _format_datetime(self.created_at),
            "updated_at": _format_datetime(self.updated_at),
        }

    def __repr__(self) -> str:
        return (
            f"<ChapterProgress chapter={self.chapter_id} {self.state.value} "
            f"watch_time={self.watch_time}>"
        )


class Enrollment:
    """A learner's enrollment in a course, aggregating chapter progress.

    The whole aggregate is saved at once. ``revision`` is 0 until the first
    save and then increases by one per save; a save only succeeds when the
    stored revision still equals the one that was read.

    Attributes:
        id: Enrollment UUID
        user_id: User UUID
        course_id: Course UUID
        progression: Chapter progress records in creation order
        enrolled_at: Enrollment timestamp
        completed_at: Course completion timestamp
        is_active: False once the course is completed
        revision: Optimistic concurrency counter
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        id: UUID | None = None,
        progression: list[ChapterProgress] | None = None,
        enrolled_at: datetime | None = None,
        completed_at: datetime | None = None,
        is_active: bool = True,
        revision: int = 0,
    ):
        self.id = id or uuid4()
        self.user_id = user_id
        self.course_id = course_id
        self.progression = progression if progression is not None else []
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.completed_at = ensure_utc_aware(completed_at)
        self.is_active = is_active
        self.revision = revision

    @property
    def is_new(self) -> bool:
        """True until the enrollment has been saved once."""
        return self.revision == 0

    def get_progress(self, chapter_id: str) -> ChapterProgress | None:
        """Progress record for a chapter, if the chapter was ever opened."""
        return next((p for p in self.progression if p.chapter_id == chapter_id), None)

    def is_chapter_completed(self, chapter_id: str) -> bool:
        progress = self.get_progress(chapter_id)
        return progress is not None and progress.is_completed

    def chapter_state(self, chapter_id: str) -> ChapterState:
        progress = self.get_progress(chapter_id)
        return progress.state if progress else ChapterState.NOT_STARTED

    def add_progress(
        self, chapter_id: str, now: datetime, watch_time: float = 0
    ) -> ChapterProgress:
        """Create and attach a new in-progress record for a chapter."""
        progress = ChapterProgress(
            enrollment_id=self.id,
            chapter_id=chapter_id,
            watch_time=watch_time,
            last_accessed_at=now,
            created_at=now,
            updated_at=now,
        )
        self.progression.append(progress)
        return progress

    def force_complete(self, chapter_id: str, now: datetime) -> ChapterProgress:
        """Mark a chapter completed, creating its record when missing."""
        progress = self.get_progress(chapter_id) or self.add_progress(chapter_id, now)
        progress.mark_completed(now)
        return progress

    def completed_count(self, chapter_ids: list[str] | None = None) -> int:
        """Count completed chapters, optionally restricted to ``chapter_ids``."""
        if chapter_ids is None:
            return sum(1 for p in self.progression if p.is_completed)
        return sum(1 for cid in chapter_ids if self.is_chapter_completed(cid))

    def complete(self, now: datetime) -> None:
        """Terminal transition: the enrollment is finished and deactivated."""
        self.completed_at = now
        self.is_active = False

    def progression_json(self) -> str:
        """Serialize the progression for the ``progression`` column."""
        return json.dumps([p.to_dict() for p in self.progression])

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        progression = json.loads(row.progression) if row.progression else []
        return cls(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            progression=[ChapterProgress.from_dict(p) for p in progression],
            enrolled_at=row.enrolled_at,
            completed_at=row.completed_at,
            is_active=bool(row.is_active),
            revision=row.revision or 0,
        )

    def __repr__(self) -> str:
        status = "active" if self.is_active else "completed"
        return (
            f"<Enrollment user={self.user_id} course={self.course_id} "
            f"{status} chapters={len(self.progression)} rev={self.revision}>"
        )
