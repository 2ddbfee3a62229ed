"""Sequential unlock rules.

A course with sequential progression is read as one flat chapter sequence
ordered by ``(section.order, chapter.order)``. The first chapter is always
open; any other chapter opens once the chapter right before it is
completed, even when that chapter lives in the previous section.
"""

from dataclasses import dataclass
from enum import Enum

from learnhub.catalog.models import Chapter, Course

from .models import Enrollment


class AccessReason(str, Enum):
    """Why a chapter is or is not accessible."""

    SEQUENTIAL_DISABLED = "sequential_disabled"
    FIRST_CHAPTER = "first_chapter"
    PREVIOUS_COMPLETED = "previous_completed"
    PREVIOUS_NOT_COMPLETED = "previous_not_completed"


DEFAULT_UNLOCK_MESSAGE = 'Complete "{title}" before starting this chapter'


@dataclass(frozen=True)
class ChapterAccess:
    """Result of an access check."""

    has_access: bool
    reason: AccessReason
    required_chapter: Chapter | None = None

    def denial_message(self, course: Course) -> str:
        """Message shown to a learner that hit the gate."""
        if course.unlock_message:
            return course.unlock_message
        title = self.required_chapter.title if self.required_chapter else ""
        return DEFAULT_UNLOCK_MESSAGE.format(title=title)


def check_chapter_access(
    course: Course, enrollment: Enrollment, chapter_id: str
) -> ChapterAccess:
    """Decide whether ``chapter_id`` may be opened or completed.

    Unknown chapters are treated like the first chapter; callers resolve
    chapter existence before checking access.
    """
    if not course.sequential_progression:
        return ChapterAccess(True, AccessReason.SEQUENTIAL_DISABLED)

    previous = course.previous_chapter(chapter_id)
    if previous is None:
        return ChapterAccess(True, AccessReason.FIRST_CHAPTER)

    if enrollment.is_chapter_completed(previous.id):
        return ChapterAccess(True, AccessReason.PREVIOUS_COMPLETED, previous)

    return ChapterAccess(False, AccessReason.PREVIOUS_NOT_COMPLETED, previous)
