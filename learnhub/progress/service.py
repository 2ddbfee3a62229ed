"""Course enrollment and chapter progression service layer.

Business logic for:
- Implicit enrollment on first chapter access
- Sequential unlock enforcement
- Chapter start/completion and watch time tracking
- Section and course completion aggregation

Each operation reads the enrollment aggregate, mutates it in memory and
saves it once. Saves are compare-and-set on the enrollment revision, so a
concurrent writer makes the later save fail with
ConcurrentModificationError instead of silently losing an update.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.catalog.models import Course, Section
from learnhub.core.exceptions import (
    AccessDeniedError,
    InvalidStateError,
    NotFoundError,
)

from .models import ContentType, Enrollment
from .schemas import (
    ChapterProgressResponse,
    CompleteChapterResponse,
    CompleteCourseResponse,
    CompleteSectionResponse,
    CourseProgressResponse,
    EnrollmentResponse,
    SectionProgressResponse,
    StartChapterResponse,
    UpdateWatchTimeResponse,
)
from .sequencing import check_chapter_access


if TYPE_CHECKING:
    from learnhub.catalog.repository import CourseRepository, UserDirectory
    from learnhub.notifications.service import NotificationService

    from .repository import CompletionRepository, EnrollmentRepository

logger = structlog.get_logger(__name__)


def _percentage(completed: int, total: int) -> float:
    """Completion ratio as a 0-100 percentage rounded to 2 decimals."""
    if total <= 0:
        return 0.0
    return round(completed / total * 100, 2)


class ProgressionService:
    """Service for course enrollment and chapter progression."""

    def __init__(
        self,
        courses: "CourseRepository",
        users: "UserDirectory",
        enrollments: "EnrollmentRepository",
        completions: "CompletionRepository",
        notifications: "NotificationService | None" = None,
    ):
        self.courses = courses
        self.users = users
        self.enrollments = enrollments
        self.completions = completions
        self.notifications = notifications

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def _require_user(self, user_id: UUID) -> None:
        if not await self.users.user_exists(user_id):
            raise NotFoundError("user")

    async def _require_course(self, course_id: UUID) -> Course:
        course = await self.courses.get_course(course_id)
        if not course:
            raise NotFoundError("course")
        return course

    @staticmethod
    def _require_section(course: Course, section_id: str) -> Section:
        section = course.get_section(section_id)
        if not section:
            raise NotFoundError("section", "Section not found in this course")
        return section

    async def _require_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment:
        enrollment = await self.enrollments.get_active(user_id, course_id)
        if not enrollment:
            raise NotFoundError("enrollment", "Course enrollment not found")
        return enrollment

    def _check_access(
        self, course: Course, enrollment: Enrollment, chapter_id: str
    ) -> None:
        """Raise AccessDeniedError when sequential progression blocks a chapter."""
        if not course.sequential_progression:
            return

        access = check_chapter_access(course, enrollment, chapter_id)
        if access.has_access:
            return

        required = access.required_chapter
        logger.info(
            "chapter_access_denied",
            user_id=str(enrollment.user_id),
            course_id=str(course.id),
            chapter_id=chapter_id,
            required_chapter_id=required.id if required else None,
        )
        raise AccessDeniedError(
            access.denial_message(course),
            reason=access.reason.value,
            required_chapter_id=required.id if required else None,
            required_chapter_title=required.title if required else None,
        )

    # ==========================================================================
    # Enrollment
    # ==========================================================================

    async def _get_or_build_enrollment(
        self, user_id: UUID, course: Course
    ) -> Enrollment:
        """Active enrollment for the pair, or a new unsaved one.

        A new enrollment is only persisted by the caller's single save.
        """
        enrollment = await self.enrollments.get(user_id, course.id)

        if enrollment and not enrollment.is_active:
            raise InvalidStateError("Course already completed")

        if enrollment:
            return enrollment

        enrollment = Enrollment(user_id=user_id, course_id=course.id)
        await self._notify_enrollment(user_id, course)
        return enrollment

    async def _notify_enrollment(self, user_id: UUID, course: Course) -> None:
        """Send the enrollment notification; failures never reach the caller."""
        if not self.notifications:
            return

        try:
            await self.notifications.notify_course_enrollment(
                user_id=user_id, course_id=course.id, course_title=course.title
            )
        except Exception as e:
            logger.warning(
                "enrollment_notification_failed",
                user_id=str(user_id),
                course_id=str(course.id),
                error=str(e),
            )

    # ==========================================================================
    # Chapter Operations
    # ==========================================================================

    async def start_chapter(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: str,
        chapter_id: str,
        watch_time: float | None = None,
    ) -> StartChapterResponse:
        """Open a chapter, enrolling the user on first access.

        Raises:
            NotFoundError: If user, course, section or chapter does not exist
            InvalidStateError: If the user already completed the course
            AccessDeniedError: If sequential progression blocks the chapter
        """
        await self._require_user(user_id)
        course = await self._require_course(course_id)
        section = self._require_section(course, section_id)
        chapter = section.get_chapter(chapter_id)
        if not chapter:
            raise NotFoundError("chapter", "Chapter not found in this section")

        enrollment = await self._get_or_build_enrollment(user_id, course)
        self._check_access(course, enrollment, chapter_id)

        now = datetime.now(UTC)
        progress = enrollment.get_progress(chapter_id)
        if progress:
            progress.touch(now, watch_time)
        else:
            progress = enrollment.add_progress(chapter_id, now, watch_time or 0)

        enrolled_now = enrollment.is_new
        await self.enrollments.save(enrollment)

        if enrolled_now:
            logger.info(
                "enrollment_created",
                enrollment_id=str(enrollment.id),
                user_id=str(user_id),
                course_id=str(course_id),
            )

        logger.info(
            "chapter_started",
            user_id=str(user_id),
            course_id=str(course_id),
            chapter_id=chapter_id,
            watch_time=progress.watch_time,
        )

        return StartChapterResponse(
            message="Chapter started",
            enrollment_id=enrollment.id,
            chapter_id=chapter_id,
            progress=ChapterProgressResponse.from_entity(progress, chapter.title),
        )

    async def complete_chapter(
        self, user_id: UUID, course_id: UUID, chapter_id: str
    ) -> CompleteChapterResponse:
        """Mark a started chapter completed.

        Completing an already completed chapter keeps its first
        ``completed_at``.

        Raises:
            NotFoundError: If enrollment, course, chapter or progress is missing
            AccessDeniedError: If sequential progression blocks the chapter
        """
        enrollment = await self._require_enrollment(user_id, course_id)
        course = await self._require_course(course_id)
        if not course.find_chapter(chapter_id):
            raise NotFoundError("chapter", "Chapter not found in this course")

        self._check_access(course, enrollment, chapter_id)

        progress = enrollment.get_progress(chapter_id)
        if not progress:
            raise NotFoundError(
                "progress", "Chapter progress not found, start the chapter first"
            )

        already_completed = progress.is_completed
        progress.mark_completed(datetime.now(UTC))
        await self.enrollments.save(enrollment)

        logger.info(
            "chapter_completed",
            user_id=str(user_id),
            course_id=str(course_id),
            chapter_id=chapter_id,
            already_completed=already_completed,
        )

        return CompleteChapterResponse(
            message="Chapter completed",
            chapter_id=chapter_id,
            completed_at=progress.completed_at,
        )

    async def update_watch_time(
        self, user_id: UUID, course_id: UUID, chapter_id: str, watch_time: float
    ) -> UpdateWatchTimeResponse:
        """Overwrite the watch time of a started chapter (last write wins)."""
        enrollment = await self._require_enrollment(user_id, course_id)

        progress = enrollment.get_progress(chapter_id)
        if not progress:
            raise NotFoundError("progress", "Chapter progress not found")

        progress.touch(datetime.now(UTC), watch_time)
        await self.enrollments.save(enrollment)

        logger.debug(
            "watch_time_updated",
            user_id=str(user_id),
            course_id=str(course_id),
            chapter_id=chapter_id,
            watch_time=watch_time,
        )

        return UpdateWatchTimeResponse(
            message="Watch time updated",
            chapter_id=chapter_id,
            watch_time=progress.watch_time,
            last_accessed_at=progress.last_accessed_at,
        )

    # ==========================================================================
    # Section Operations
    # ==========================================================================

    async def complete_section(
        self,
        user_id: UUID,
        course_id: UUID,
        section_id: str,
        force_complete: bool = False,
    ) -> CompleteSectionResponse:
        """Complete a section, or report how far along it is.

        Without ``force_complete`` a section with unfinished chapters yields
        ``success=False`` and nothing is written. With it, every unfinished
        chapter of the section is marked completed, ignoring sequential
        progression.

        Raises:
            NotFoundError: If user, course, section or enrollment is missing
            InvalidStateError: If the section has no chapters
        """
        await self._require_user(user_id)
        course = await self._require_course(course_id)
        section = self._require_section(course, section_id)
        enrollment = await self._require_enrollment(user_id, course_id)

        chapter_ids = [chapter.id for chapter in section.chapters]
        total = len(chapter_ids)
        if total == 0:
            raise InvalidStateError("Section has no chapters")

        completed = enrollment.completed_count(chapter_ids)

        if completed < total and not force_complete:
            return CompleteSectionResponse(
                success=False,
                message=f"{total - completed} chapter(s) still to complete",
                section_id=section_id,
                is_completed=False,
                completed_chapters=completed,
                total_chapters=total,
                completion_percentage=_percentage(completed, total),
            )

        now = datetime.now(UTC)
        if completed < total:
            for chapter_id in chapter_ids:
                if not enrollment.is_chapter_completed(chapter_id):
                    enrollment.force_complete(chapter_id, now)
            await self.enrollments.save(enrollment)
            completed_at = now
        else:
            completed_at = max(
                enrollment.get_progress(cid).completed_at for cid in chapter_ids
            )

        logger.info(
            "section_completed",
            user_id=str(user_id),
            course_id=str(course_id),
            section_id=section_id,
            forced=completed < total,
        )

        return CompleteSectionResponse(
            success=True,
            message=f'Section "{section.title}" completed',
            section_id=section_id,
            is_completed=True,
            completed_chapters=total,
            total_chapters=total,
            completion_percentage=100.0,
            completed_at=completed_at,
        )

    async def get_section_progress(
        self, user_id: UUID, course_id: UUID, section_id: str
    ) -> SectionProgressResponse:
        """Per-chapter progress of a section; zero shape when not enrolled."""
        course = await self._require_course(course_id)
        section = self._require_section(course, section_id)
        total = len(section.chapters)

        enrollment = await self.enrollments.get_active(user_id, course_id)
        if not enrollment:
            return SectionProgressResponse(
                section_id=section_id,
                section_title=section.title,
                is_enrolled=False,
                total_chapters=total,
            )

        chapters = []
        for chapter in section.chapters:
            progress = enrollment.get_progress(chapter.id)
            if progress:
                chapters.append(
                    ChapterProgressResponse.from_entity(progress, chapter.title)
                )
            else:
                chapters.append(
                    ChapterProgressResponse.not_started(chapter.id, chapter.title)
                )

        completed = sum(1 for c in chapters if c.is_completed)
        return SectionProgressResponse(
            section_id=section_id,
            section_title=section.title,
            is_enrolled=True,
            completed_chapters=completed,
            total_chapters=total,
            completion_percentage=_percentage(completed, total),
            chapters=chapters,
        )

    # ==========================================================================
    # Course Operations
    # ==========================================================================

    async def complete_course(
        self, user_id: UUID, course_id: UUID
    ) -> CompleteCourseResponse:
        """Complete every chapter and close the enrollment.

        Raises:
            NotFoundError: If enrollment or course is missing
            InvalidStateError: If the course has no chapters
        """
        enrollment = await self._require_enrollment(user_id, course_id)
        course = await self._require_course(course_id)

        chapters = course.flattened_chapters()
        if not chapters:
            raise InvalidStateError("Course has no chapters")

        now = datetime.now(UTC)
        for chapter in chapters:
            enrollment.force_complete(chapter.id, now)
        enrollment.complete(now)

        await self.enrollments.save(enrollment)

        if course.community_id:
            await self.completions.record_completion(
                user_id=user_id,
                community_id=course.community_id,
                content_type=ContentType.COURSE.value,
                content_id=str(course_id),
                completed_at=now,
            )

        logger.info(
            "course_completed",
            user_id=str(user_id),
            course_id=str(course_id),
            total_chapters=len(chapters),
        )

        return CompleteCourseResponse(
            message=f'Course "{course.title}" completed',
            course_id=course_id,
            total_chapters=len(chapters),
            completed_at=now,
        )

    async def get_user_course_progress(
        self, user_id: UUID, course_id: UUID
    ) -> CourseProgressResponse:
        """Overall course progress; zero shape when not enrolled."""
        enrollment = await self.enrollments.get_active(user_id, course_id)
        if not enrollment:
            return CourseProgressResponse(is_enrolled=False)

        course = await self._require_course(course_id)
        total = course.chapter_count()
        completed = enrollment.completed_count()

        return CourseProgressResponse(
            is_enrolled=True,
            progress=_percentage(completed, total),
            chapters_completed=completed,
            total_chapters=total,
            enrollment=EnrollmentResponse.from_entity(enrollment),
        )
