"""Shared fixtures: in-memory repositories and catalog builders."""

import copy
import os
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest

from learnhub.achievements.models import Achievement, UserAchievement, scope_for
from learnhub.catalog.models import Chapter, Community, Course, Section
from learnhub.core.exceptions import ConcurrentModificationError
from learnhub.progress.models import Enrollment


os.environ.setdefault("ENVIRONMENT", "testing")


# ==============================================================================
# In-memory repositories
# ==============================================================================


class InMemoryCourses:
    def __init__(self, *courses: Course):
        self.courses = {course.id: course for course in courses}

    async def get_course(self, course_id: UUID) -> Course | None:
        return self.courses.get(course_id)


class InMemoryUsers:
    def __init__(self, *user_ids: UUID):
        self.user_ids = set(user_ids)

    async def user_exists(self, user_id: UUID) -> bool:
        return user_id in self.user_ids


class InMemoryEnrollments:
    """Stores copies, so callers only see changes they saved."""

    def __init__(self):
        self.rows: dict[tuple[UUID, UUID], Enrollment] = {}
        self.saves = 0

    async def get(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        stored = self.rows.get((user_id, course_id))
        return copy.deepcopy(stored) if stored else None

    async def get_active(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        enrollment = await self.get(user_id, course_id)
        return enrollment if enrollment and enrollment.is_active else None

    async def save(self, enrollment: Enrollment) -> Enrollment:
        key = (enrollment.user_id, enrollment.course_id)
        stored = self.rows.get(key)
        stored_revision = stored.revision if stored else 0
        if stored_revision != enrollment.revision:
            raise ConcurrentModificationError
        enrollment.revision += 1
        self.rows[key] = copy.deepcopy(enrollment)
        self.saves += 1
        return enrollment


class InMemoryCompletions:
    def __init__(self):
        self.items: set[tuple[UUID, UUID, str, str]] = set()

    async def record_completion(
        self,
        user_id: UUID,
        community_id: UUID,
        content_type: str,
        content_id: str,
        completed_at: datetime,
    ) -> None:
        self.items.add((user_id, community_id, content_type, content_id))

    async def count_completed(
        self, user_id: UUID, community_id: UUID, content_type: str, limit: int
    ) -> int:
        matching = [
            item
            for item in self.items
            if item[:3] == (user_id, community_id, content_type)
        ]
        return min(len(matching), limit)


class InMemoryCommunities:
    def __init__(self, *communities: Community):
        self.communities = {c.id: c for c in communities}

    async def get_by_id(self, community_id: UUID) -> Community | None:
        return self.communities.get(community_id)

    async def get_by_slug(self, slug: str) -> Community | None:
        return next((c for c in self.communities.values() if c.slug == slug), None)


class InMemoryAchievements:
    def __init__(self, *achievements: Achievement):
        self.achievements = list(achievements)

    async def create(self, achievement: Achievement) -> Achievement:
        self.achievements.append(achievement)
        return achievement

    async def list_active(self, community_id: UUID | None = None) -> list[Achievement]:
        scopes = {scope_for(None), scope_for(community_id)}
        return [
            a for a in self.achievements if a.is_active and a.scope in scopes
        ]


class InMemoryUserAchievements:
    def __init__(self):
        self.awards: dict[tuple[UUID, UUID, UUID], UserAchievement] = {}

    async def list_for_user(
        self, user_id: UUID, community_id: UUID
    ) -> list[UserAchievement]:
        return [
            ua
            for (uid, cid, _), ua in self.awards.items()
            if uid == user_id and cid == community_id
        ]

    async def award(self, user_achievement: UserAchievement) -> bool:
        key = (
            user_achievement.user_id,
            user_achievement.community_id,
            user_achievement.achievement_id,
        )
        if key in self.awards:
            return False
        self.awards[key] = user_achievement
        return True


# ==============================================================================
# Catalog builders
# ==============================================================================


def make_section(
    section_id: str, order: int, chapter_ids: list[str], title: str | None = None
) -> Section:
    """Section whose chapters are ordered as listed and titled after their ids."""
    return Section(
        id=section_id,
        title=title or f"Section {section_id}",
        order=order,
        chapters=[
            Chapter(id=cid, title=f"Chapter {cid}", order=index + 1)
            for index, cid in enumerate(chapter_ids)
        ],
    )


def make_course(
    sections: list[Section],
    sequential: bool = False,
    community_id: UUID | None = None,
    unlock_message: str | None = None,
) -> Course:
    return Course(
        id=uuid4(),
        title="Pharmacology 101",
        community_id=community_id,
        sections=sections,
        sequential_progression=sequential,
        unlock_message=unlock_message,
    )


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def user_id() -> UUID:
    """Test user ID."""
    return uuid4()


@pytest.fixture
def community() -> Community:
    """Test community."""
    return Community(
        id=uuid4(), slug="pharma", name="Pharma", created_at=datetime.now(UTC)
    )


@pytest.fixture
def enrollments() -> InMemoryEnrollments:
    return InMemoryEnrollments()


@pytest.fixture
def completions() -> InMemoryCompletions:
    return InMemoryCompletions()


@pytest.fixture
def mock_notifications() -> Mock:
    """Notification sink with awaitable notify methods."""
    notifications = Mock()
    notifications.notify_course_enrollment = AsyncMock()
    notifications.notify_achievement_unlocked = AsyncMock()
    return notifications


@pytest.fixture
def client():
    """Test client without lifespan; services are attached per test."""
    from fastapi.testclient import TestClient

    from learnhub.main import app

    yield TestClient(app)
    for name in ("progression_service", "achievement_service", "cassandra_session"):
        if hasattr(app.state, name):
            delattr(app.state, name)


def auth_headers(user_id: UUID, role: str = "student") -> dict[str, str]:
    """Authorization header carrying a freshly signed access token."""
    from learnhub.auth.security import create_access_token

    token = create_access_token({"sub": str(user_id), "role": role})
    return {"Authorization": f"Bearer {token}"}
