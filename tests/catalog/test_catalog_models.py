"""Tests for catalog read models."""

import json
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from learnhub.catalog.models import Chapter, Course, Section
from learnhub.catalog.repository import CommunityRepository, CourseRepository


def _sections_json() -> str:
    # Stored out of order
    return json.dumps(
        [
            {
                "id": "s2",
                "title": "Dosage",
                "order": 2,
                "chapters": [{"id": "c3", "title": "Pediatrics", "order": 1}],
            },
            {
                "id": "s1",
                "title": "Basics",
                "order": 1,
                "chapters": [
                    {"id": "c2", "title": "Absorption", "order": 2, "is_preview": True},
                    {"id": "c1", "title": "Intro", "order": 1},
                ],
            },
        ]
    )


def _row(**overrides) -> Mock:
    values = {
        "id": uuid4(),
        "title": "Pharmacology 101",
        "community_id": uuid4(),
        "sections": _sections_json(),
        "sequential_progression": True,
        "unlock_message": None,
    }
    values.update(overrides)
    return Mock(**values)


class TestCourseOrdering:
    """Tests for section and chapter ordering."""

    def test_from_row_sorts_sections_and_chapters(self) -> None:
        """The flattened sequence follows (section.order, chapter.order)."""
        course = Course.from_row(_row())

        assert [s.id for s in course.sections] == ["s1", "s2"]
        assert [c.id for c in course.flattened_chapters()] == ["c1", "c2", "c3"]
        assert course.sequential_progression is True

    def test_empty_sections(self) -> None:
        course = Course.from_row(_row(sections=None, sequential_progression=None))

        assert course.sections == []
        assert course.chapter_count() == 0
        assert course.sequential_progression is False

    def test_counts(self) -> None:
        course = Course.from_row(_row())

        assert course.chapter_count() == 3
        assert course.preview_chapter_count() == 1

    def test_sections_json_keeps_order(self) -> None:
        course = Course.from_row(_row())

        stored = json.loads(course.sections_json())

        assert [s["id"] for s in stored] == ["s1", "s2"]


class TestNeighbours:
    """Tests for previous_chapter and next_chapter."""

    @pytest.fixture
    def course(self) -> Course:
        return Course(
            id=uuid4(),
            title="Course",
            sections=[
                Section(
                    id="s1",
                    title="One",
                    order=1,
                    chapters=[Chapter("c1", "C1", 1), Chapter("c2", "C2", 2)],
                ),
                Section(id="s2", title="Two", order=2, chapters=[Chapter("c3", "C3", 1)]),
            ],
        )

    def test_previous_crosses_sections(self, course: Course) -> None:
        assert course.previous_chapter("c3").id == "c2"
        assert course.previous_chapter("c2").id == "c1"

    def test_first_chapter_has_no_previous(self, course: Course) -> None:
        assert course.previous_chapter("c1") is None
        assert course.previous_chapter("missing") is None

    def test_next(self, course: Course) -> None:
        assert course.next_chapter("c2").id == "c3"
        assert course.next_chapter("c3") is None

    def test_find_chapter(self, course: Course) -> None:
        assert course.find_chapter("c3").title == "C3"
        assert course.get_section("s1").get_chapter("c3") is None


class TestCatalogRepositories:
    """Tests for catalog lookups over a mocked session."""

    @pytest.fixture
    def mock_session(self):
        session = Mock(spec=Session)
        session.prepare = Mock(return_value=Mock())
        session.aexecute = AsyncMock()
        return session

    @pytest.mark.asyncio
    async def test_get_course(self, mock_session) -> None:
        row = _row()
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=row))

        course = await CourseRepository(mock_session, "ks").get_course(row.id)

        assert course.id == row.id
        assert course.chapter_count() == 3

    @pytest.mark.asyncio
    async def test_get_course_missing(self, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=None))

        assert await CourseRepository(mock_session, "ks").get_course(uuid4()) is None

    @pytest.mark.asyncio
    async def test_community_by_slug(self, mock_session) -> None:
        """Slug lookup resolves the id, then loads the community."""
        community_id = uuid4()
        slug_row = Mock(community_id=community_id)
        community_row = Mock(id=community_id, slug="pharma", created_at=None)
        community_row.name = "Pharma"
        mock_session.aexecute.side_effect = [
            Mock(one=Mock(return_value=slug_row)),
            Mock(one=Mock(return_value=community_row)),
        ]

        community = await CommunityRepository(mock_session, "ks").get_by_slug("pharma")

        assert community.id == community_id
        assert community.slug == "pharma"
        assert community.name == "Pharma"

    @pytest.mark.asyncio
    async def test_unknown_slug(self, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=None))

        assert await CommunityRepository(mock_session, "ks").get_by_slug("x") is None
