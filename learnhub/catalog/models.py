"""Read models for the course catalog.

The catalog (courses, communities, users) is owned by sibling services;
this package only reads it. A course is stored as a single document row
whose ``sections`` column holds the ordered section/chapter tree as JSON.

Sections are kept sorted by ``order`` and chapters sorted by ``order``
within their section as soon as a Course is built, so the flattened
chapter sequence used by sequential progression is always
``(section.order, chapter.order)``.
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from learnhub.progress.models import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    community_id UUID,
    title TEXT,
    sequential_progression BOOLEAN,
    unlock_message TEXT,
    sections TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COMMUNITIES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.communities (
    id UUID PRIMARY KEY,
    slug TEXT,
    name TEXT,
    created_at TIMESTAMP
)
"""

# Lookup: community by slug
COMMUNITIES_BY_SLUG_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.communities_by_slug (
    slug TEXT PRIMARY KEY,
    community_id UUID
)
"""

USERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    name TEXT,
    email TEXT,
    created_at TIMESTAMP
)
"""

CATALOG_TABLES_CQL = [
    COURSES_TABLE_CQL,
    COMMUNITIES_TABLE_CQL,
    COMMUNITIES_BY_SLUG_TABLE_CQL,
    USERS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Chapter:
    """A chapter inside a section."""

    id: str
    title: str
    order: int
    is_preview: bool = False
    is_paid_chapter: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chapter":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            order=int(data.get("order", 0)),
            is_preview=bool(data.get("is_preview", False)),
            is_paid_chapter=bool(data.get("is_paid_chapter", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "is_preview": self.is_preview,
            "is_paid_chapter": self.is_paid_chapter,
        }


@dataclass
class Section:
    """An ordered group of chapters."""

    id: str
    title: str
    order: int
    chapters: list[Chapter] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.chapters.sort(key=lambda chapter: chapter.order)

    def get_chapter(self, chapter_id: str) -> Chapter | None:
        """Find a chapter of this section by id."""
        return next((c for c in self.chapters if c.id == chapter_id), None)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Section":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            order=int(data.get("order", 0)),
            chapters=[Chapter.from_dict(c) for c in data.get("chapters", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "order": self.order,
            "chapters": [chapter.to_dict() for chapter in self.chapters],
        }


@dataclass
class Course:
    """Course document with its section/chapter tree."""

    id: UUID
    title: str
    community_id: UUID | None = None
    sections: list[Section] = field(default_factory=list)
    sequential_progression: bool = False
    unlock_message: str | None = None

    def __post_init__(self) -> None:
        self.sections.sort(key=lambda section: section.order)

    def get_section(self, section_id: str) -> Section | None:
        """Find a section by id."""
        return next((s for s in self.sections if s.id == section_id), None)

    def flattened_chapters(self) -> list[Chapter]:
        """All chapters in (section.order, chapter.order) sequence."""
        return [chapter for section in self.sections for chapter in section.chapters]

    def find_chapter(self, chapter_id: str) -> Chapter | None:
        """Find a chapter anywhere in the course."""
        return next(
            (c for c in self.flattened_chapters() if c.id == chapter_id), None
        )

    def chapter_count(self) -> int:
        return sum(len(section.chapters) for section in self.sections)

    def preview_chapter_count(self) -> int:
        return sum(
            1 for chapter in self.flattened_chapters() if chapter.is_preview
        )

    def _chapter_index(self, chapter_id: str) -> int | None:
        for index, chapter in enumerate(self.flattened_chapters()):
            if chapter.id == chapter_id:
                return index
        return None

    def previous_chapter(self, chapter_id: str) -> Chapter | None:
        """Chapter immediately before ``chapter_id``, crossing section boundaries.

        Returns None for the first chapter of the course or an unknown id.
        """
        index = self._chapter_index(chapter_id)
        if not index:
            return None
        return self.flattened_chapters()[index - 1]

    def next_chapter(self, chapter_id: str) -> Chapter | None:
        """Chapter immediately after ``chapter_id``, crossing section boundaries."""
        index = self._chapter_index(chapter_id)
        chapters = self.flattened_chapters()
        if index is None or index + 1 >= len(chapters):
            return None
        return chapters[index + 1]

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        sections = json.loads(row.sections) if row.sections else []
        return cls(
            id=row.id,
            title=row.title or "",
            community_id=row.community_id,
            sections=[Section.from_dict(s) for s in sections],
            sequential_progression=bool(row.sequential_progression),
            unlock_message=row.unlock_message,
        )

    def sections_json(self) -> str:
        """Serialize the section tree for the ``sections`` column."""
        return json.dumps([section.to_dict() for section in self.sections])


@dataclass
class Community:
    """Community that scopes courses and achievements."""

    id: UUID
    slug: str
    name: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_row(cls, row: Any) -> "Community":
        """Create Community instance from Cassandra row."""
        return cls(
            id=row.id,
            slug=row.slug,
            name=row.name or "",
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
        )
