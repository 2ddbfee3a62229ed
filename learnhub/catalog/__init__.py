"""Course catalog read model.

Provides:
- Course, Section, Chapter and Community entities
- Read-only repositories over the catalog tables
"""

from .models import CATALOG_TABLES_CQL, Chapter, Community, Course, Section
from .repository import CommunityRepository, CourseRepository, UserDirectory


__all__ = [
    "CATALOG_TABLES_CQL",
    "Chapter",
    "Community",
    "CommunityRepository",
    "Course",
    "CourseRepository",
    "Section",
    "UserDirectory",
]
