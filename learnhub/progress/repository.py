# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra persistence for enrollments and content completions."""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.core.exceptions import ConcurrentModificationError

from .models import Enrollment


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class EnrollmentRepository:
    """Enrollment aggregate storage with compare-and-set saves."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ? AND user_id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (course_id, user_id, id, progression, enrolled_at, completed_at,
             is_active, revision)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._update_enrollment = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET progression = ?, completed_at = ?, is_active = ?, revision = ?
            WHERE course_id = ? AND user_id = ?
            IF revision = ?
        """)

    async def get(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        """Enrollment for the pair, active or completed."""
        result = await self.session.aexecute(
            self._get_enrollment, [course_id, user_id]
        )
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def get_active(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        """Active enrollment for the pair, if any."""
        enrollment = await self.get(user_id, course_id)
        if enrollment is None or not enrollment.is_active:
            return None
        return enrollment

    async def save(self, enrollment: Enrollment) -> Enrollment:
        """Persist the whole aggregate in one write.

        The write only applies when the stored revision still matches the
        revision the aggregate was read at; on success the revision is
        bumped in place.

        Raises:
            ConcurrentModificationError: If another writer saved first
        """
        expected = enrollment.revision
        new_revision = expected + 1

        if enrollment.is_new:
            result = await self.session.aexecute(
                self._insert_enrollment,
                [
                    enrollment.course_id,
                    enrollment.user_id,
                    enrollment.id,
                    enrollment.progression_json(),
                    enrollment.enrolled_at,
                    enrollment.completed_at,
                    enrollment.is_active,
                    new_revision,
                ],
            )
        else:
            result = await self.session.aexecute(
                self._update_enrollment,
                [
                    enrollment.progression_json(),
                    enrollment.completed_at,
                    enrollment.is_active,
                    new_revision,
                    enrollment.course_id,
                    enrollment.user_id,
                    expected,
                ],
            )

        if not result.was_applied:
            logger.warning(
                "enrollment_save_conflict",
                enrollment_id=str(enrollment.id),
                user_id=str(enrollment.user_id),
                course_id=str(enrollment.course_id),
                expected_revision=expected,
            )
            raise ConcurrentModificationError

        enrollment.revision = new_revision
        return enrollment


class CompletionRepository:
    """Completed content items per user and community."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_completion = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.content_completions
            (user_id, community_id, content_type, content_id, completed_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._list_completions = self.session.prepare(f"""
            SELECT content_id FROM {self.keyspace}.content_completions
            WHERE user_id = ? AND community_id = ? AND content_type = ?
            LIMIT ?
        """)

    async def record_completion(
        self,
        user_id: UUID,
        community_id: UUID,
        content_type: str,
        content_id: str,
        completed_at: datetime,
    ) -> None:
        """Record a completed item; recording it again is an upsert."""
        await self.session.aexecute(
            self._insert_completion,
            [user_id, community_id, content_type, content_id, completed_at],
        )

    async def count_completed(
        self,
        user_id: UUID,
        community_id: UUID,
        content_type: str,
        limit: int,
    ) -> int:
        """Count completed items of a type, reading at most ``limit`` rows."""
        result = await self.session.aexecute(
            self._list_completions,
            [user_id, community_id, content_type, limit],
        )
        return len(list(result))
