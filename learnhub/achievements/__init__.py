"""Achievement evaluation module.

Provides:
- Achievement definitions with typed criteria
- Progress computation per criteria type
- Idempotent award issuance
"""

from .models import (
    ACHIEVEMENTS_TABLES_CQL,
    Achievement,
    AchievementCriteria,
    AchievementProgress,
    CriteriaType,
    Rarity,
    UserAchievement,
)


__all__ = [
    "ACHIEVEMENTS_TABLES_CQL",
    "Achievement",
    "AchievementCriteria",
    "AchievementProgress",
    "CriteriaType",
    "Rarity",
    "UserAchievement",
]
