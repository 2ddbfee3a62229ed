# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Read-only access to catalog documents (courses, communities, users)."""

from typing import TYPE_CHECKING
from uuid import UUID

from .models import Community, Course


if TYPE_CHECKING:
    from cassandra.cluster import Session


class CourseRepository:
    """Course document reads."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._get_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)

    async def get_course(self, course_id: UUID) -> Course | None:
        """Load a course with its section/chapter tree, sorted by order."""
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None


class CommunityRepository:
    """Community lookups by id and by slug."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._get_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.communities WHERE id = ?
        """)
        self._get_id_by_slug = self.session.prepare(f"""
            SELECT community_id FROM {self.keyspace}.communities_by_slug
            WHERE slug = ?
        """)

    async def get_by_id(self, community_id: UUID) -> Community | None:
        result = await self.session.aexecute(self._get_by_id, [community_id])
        row = result.one()
        return Community.from_row(row) if row else None

    async def get_by_slug(self, slug: str) -> Community | None:
        result = await self.session.aexecute(self._get_id_by_slug, [slug])
        row = result.one()
        if not row:
            return None
        return await self.get_by_id(row.community_id)


class UserDirectory:
    """Existence checks against the user table owned by the identity service."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._get_user = self.session.prepare(f"""
            SELECT id FROM {self.keyspace}.users WHERE id = ?
        """)

    async def user_exists(self, user_id: UUID) -> bool:
        result = await self.session.aexecute(self._get_user, [user_id])
        return result.one() is not None
