"""Pydantic schemas for course enrollment and chapter progression.

Request and response models for:
- Starting and completing chapters
- Watch time updates
- Section and course completion
- Progress queries
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import ChapterProgress, ChapterState, Enrollment


# ==============================================================================
# Chapter Progress Schemas
# ==============================================================================


class ChapterProgressResponse(BaseModel):
    """Progress of a single chapter."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    chapter_id: str
    chapter_title: str | None = None
    state: ChapterState = ChapterState.NOT_STARTED
    is_completed: bool = False
    watch_time: float = 0
    completed_at: datetime | None = None
    last_accessed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(
        cls, entity: ChapterProgress, chapter_title: str | None = None
    ) -> "ChapterProgressResponse":
        """Create response from entity."""
        return cls(
            id=entity.id,
            chapter_id=entity.chapter_id,
            chapter_title=chapter_title,
            state=entity.state,
            is_completed=entity.is_completed,
            watch_time=entity.watch_time,
            completed_at=entity.completed_at,
            last_accessed_at=entity.last_accessed_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    @classmethod
    def not_started(
        cls, chapter_id: str, chapter_title: str | None = None
    ) -> "ChapterProgressResponse":
        """Zero entry for a chapter the learner never opened."""
        return cls(chapter_id=chapter_id, chapter_title=chapter_title)


class StartChapterRequest(BaseModel):
    """Request to open a chapter."""

    watch_time: float | None = Field(
        default=None, ge=0, description="Seconds already watched"
    )


class StartChapterResponse(BaseModel):
    """Result of opening a chapter."""

    success: bool = True
    message: str
    enrollment_id: UUID
    chapter_id: str
    progress: ChapterProgressResponse


class CompleteChapterResponse(BaseModel):
    """Result of completing a chapter."""

    success: bool = True
    message: str
    chapter_id: str
    completed_at: datetime


class UpdateWatchTimeRequest(BaseModel):
    """Request to overwrite the watch time of a started chapter."""

    watch_time: float = Field(..., ge=0, description="Seconds watched")


class UpdateWatchTimeResponse(BaseModel):
    """Result of a watch time update."""

    success: bool = True
    message: str
    chapter_id: str
    watch_time: float
    last_accessed_at: datetime


# ==============================================================================
# Section Schemas
# ==============================================================================


class CompleteSectionRequest(BaseModel):
    """Request to complete a section."""

    force_complete: bool = Field(
        default=False,
        description="Mark every chapter of the section completed",
    )


class CompleteSectionResponse(BaseModel):
    """Section completion result.

    ``success`` is False (with no side effects) when some chapters are still
    incomplete and completion was not forced.
    """

    success: bool
    message: str
    section_id: str
    is_completed: bool
    completed_chapters: int
    total_chapters: int
    completion_percentage: float
    completed_at: datetime | None = None


class SectionProgressResponse(BaseModel):
    """Per-chapter progress of one section."""

    section_id: str
    section_title: str
    is_enrolled: bool
    completed_chapters: int = 0
    total_chapters: int
    completion_percentage: float = 0
    chapters: list[ChapterProgressResponse] = []


# ==============================================================================
# Course Schemas
# ==============================================================================


class CompleteCourseResponse(BaseModel):
    """Course completion result."""

    success: bool = True
    message: str
    course_id: UUID
    total_chapters: int
    completed_at: datetime


class EnrollmentResponse(BaseModel):
    """Enrollment snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    course_id: UUID
    enrolled_at: datetime
    completed_at: datetime | None = None
    is_active: bool
    progression: list[ChapterProgressResponse] = []

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            course_id=entity.course_id,
            enrolled_at=entity.enrolled_at,
            completed_at=entity.completed_at,
            is_active=entity.is_active,
            progression=[
                ChapterProgressResponse.from_entity(p) for p in entity.progression
            ],
        )


class CourseProgressResponse(BaseModel):
    """Course progress; zero shape when the user is not enrolled."""

    is_enrolled: bool
    progress: float = Field(default=0, description="0-100 percentage")
    chapters_completed: int = 0
    total_chapters: int = 0
    enrollment: EnrollmentResponse | None = None
