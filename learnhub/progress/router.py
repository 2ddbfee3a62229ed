"""Course progression API endpoints.

Provides routes for:
- Starting and completing chapters
- Watch time updates
- Section and course completion
- Progress queries
"""

from uuid import UUID

from fastapi import APIRouter

from learnhub.auth.dependencies import CurrentUser
from learnhub.core.context import bind_course
from learnhub.core.exceptions import DomainError, handle_domain_error

from .dependencies import ProgressionServiceDep
from .schemas import (
    CompleteChapterResponse,
    CompleteCourseResponse,
    CompleteSectionRequest,
    CompleteSectionResponse,
    CourseProgressResponse,
    SectionProgressResponse,
    StartChapterRequest,
    StartChapterResponse,
    UpdateWatchTimeRequest,
    UpdateWatchTimeResponse,
)


router = APIRouter(prefix="/v1/courses", tags=["progress"])


# ==============================================================================
# Chapter Endpoints
# ==============================================================================


@router.post(
    "/{course_id}/sections/{section_id}/chapters/{chapter_id}/start",
    response_model=StartChapterResponse,
    summary="Start a chapter",
)
async def start_chapter(
    course_id: UUID,
    section_id: str,
    chapter_id: str,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
    data: StartChapterRequest | None = None,
) -> StartChapterResponse:
    """Open a chapter, enrolling the user in the course on first access."""
    bind_course(str(course_id))
    try:
        return await progression_service.start_chapter(
            user_id=user.id,
            course_id=course_id,
            section_id=section_id,
            chapter_id=chapter_id,
            watch_time=data.watch_time if data else None,
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.post(
    "/{course_id}/chapters/{chapter_id}/complete",
    response_model=CompleteChapterResponse,
    summary="Complete a chapter",
)
async def complete_chapter(
    course_id: UUID,
    chapter_id: str,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
) -> CompleteChapterResponse:
    """Mark a started chapter completed."""
    bind_course(str(course_id))
    try:
        return await progression_service.complete_chapter(
            user_id=user.id, course_id=course_id, chapter_id=chapter_id
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.put(
    "/{course_id}/chapters/{chapter_id}/watch-time",
    response_model=UpdateWatchTimeResponse,
    summary="Update chapter watch time",
)
async def update_watch_time(
    course_id: UUID,
    chapter_id: str,
    data: UpdateWatchTimeRequest,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
) -> UpdateWatchTimeResponse:
    """Overwrite the watch time of a started chapter."""
    bind_course(str(course_id))
    try:
        return await progression_service.update_watch_time(
            user_id=user.id,
            course_id=course_id,
            chapter_id=chapter_id,
            watch_time=data.watch_time,
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


# ==============================================================================
# Section Endpoints
# ==============================================================================


@router.post(
    "/{course_id}/sections/{section_id}/complete",
    response_model=CompleteSectionResponse,
    summary="Complete a section",
)
async def complete_section(
    course_id: UUID,
    section_id: str,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
    data: CompleteSectionRequest | None = None,
) -> CompleteSectionResponse:
    """Complete a section.

    Returns ``success=false`` when chapters remain and ``force_complete`` is
    not set.
    """
    bind_course(str(course_id))
    try:
        return await progression_service.complete_section(
            user_id=user.id,
            course_id=course_id,
            section_id=section_id,
            force_complete=data.force_complete if data else False,
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.get(
    "/{course_id}/sections/{section_id}/progress",
    response_model=SectionProgressResponse,
    summary="Get section progress",
)
async def get_section_progress(
    course_id: UUID,
    section_id: str,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
) -> SectionProgressResponse:
    """Per-chapter progress of a section."""
    try:
        return await progression_service.get_section_progress(
            user_id=user.id, course_id=course_id, section_id=section_id
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


# ==============================================================================
# Course Endpoints
# ==============================================================================


@router.post(
    "/{course_id}/complete",
    response_model=CompleteCourseResponse,
    summary="Complete a course",
)
async def complete_course(
    course_id: UUID,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
) -> CompleteCourseResponse:
    """Complete every chapter and close the enrollment."""
    bind_course(str(course_id))
    try:
        return await progression_service.complete_course(
            user_id=user.id, course_id=course_id
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.get(
    "/{course_id}/progress",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    progression_service: ProgressionServiceDep,
    user: CurrentUser,
) -> CourseProgressResponse:
    """Overall course progress for the current user."""
    try:
        return await progression_service.get_user_course_progress(
            user_id=user.id, course_id=course_id
        )
    except DomainError as e:
        raise handle_domain_error(e) from e
