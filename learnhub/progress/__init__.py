"""Course enrollment and chapter progression module.

Provides:
- Implicit enrollment on first chapter access
- Sequential unlock of chapters
- Chapter, section and course completion
- Progress aggregation
"""

from .models import (
    PROGRESS_TABLES_CQL,
    ChapterProgress,
    ChapterState,
    ContentType,
    Enrollment,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "ChapterProgress",
    "ChapterState",
    "ContentType",
    "Enrollment",
]
