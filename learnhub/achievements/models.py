"""Database models for achievements.

Cassandra table definitions for:
- Achievements: badge definitions, partitioned by scope ("global" or a
  community id) so one query loads everything visible in a community
- User achievements: awards, keyed by (user, community, achievement) so
  an award can only be inserted once
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from learnhub.progress.models import ensure_utc_aware


GLOBAL_SCOPE = "global"


class CriteriaType(str, Enum):
    """Kinds of achievement criteria."""

    COUNT_COMPLETED = "count_completed"
    COUNT_CREATED = "count_created"
    TIME_SPENT = "time_spent"
    STREAK_DAYS = "streak_days"
    POINTS_EARNED = "points_earned"
    COMMUNITY_JOIN_DATE = "community_join_date"


class Rarity(str, Enum):
    """Achievement rarity tiers."""

    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


def scope_for(community_id: UUID | None) -> str:
    """Partition key of the achievements table for a community."""
    return str(community_id) if community_id else GLOBAL_SCOPE


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ACHIEVEMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.achievements (
    scope TEXT,
    id UUID,
    name TEXT,
    description TEXT,
    icon TEXT,
    criteria TEXT,
    community_id UUID,
    is_active BOOLEAN,
    rarity TEXT,
    points INT,
    tags LIST<TEXT>,
    display_order INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (scope, id)
)
"""

USER_ACHIEVEMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_achievements (
    user_id UUID,
    community_id UUID,
    achievement_id UUID,
    id UUID,
    earned_at TIMESTAMP,
    metadata TEXT,
    is_public BOOLEAN,
    shared_at TIMESTAMP,
    PRIMARY KEY ((user_id, community_id), achievement_id)
)
"""

ACHIEVEMENTS_TABLES_CQL = [
    ACHIEVEMENTS_TABLE_CQL,
    USER_ACHIEVEMENTS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class AchievementCriteria:
    """Qualification rule of an achievement.

    ``type`` stays a plain string so that unknown kinds can be reported by
    validation instead of failing at parse time.
    """

    type: str | None = None
    content_type: str | None = None
    count: int | None = None
    time_minutes: int | None = None
    days: int | None = None
    points: int | None = None
    months_since_join: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AchievementCriteria":
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})

    def to_dict(self) -> dict[str, Any]:
        """Non-empty fields only."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class Achievement:
    """Achievement definition. Global when ``community_id`` is None."""

    name: str
    description: str
    criteria: AchievementCriteria
    id: UUID = field(default_factory=uuid4)
    icon: str | None = None
    community_id: UUID | None = None
    is_active: bool = True
    rarity: str = Rarity.COMMON.value
    points: int = 0
    tags: list[str] = field(default_factory=list)
    order: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def scope(self) -> str:
        return scope_for(self.community_id)

    @classmethod
    def from_row(cls, row: Any) -> "Achievement":
        """Create Achievement from Cassandra row."""
        criteria = json.loads(row.criteria) if row.criteria else {}
        return cls(
            id=row.id,
            name=row.name,
            description=row.description or "",
            icon=row.icon,
            criteria=AchievementCriteria.from_dict(criteria),
            community_id=row.community_id,
            is_active=bool(row.is_active),
            rarity=row.rarity or Rarity.COMMON.value,
            points=row.points or 0,
            tags=list(row.tags or []),
            order=row.display_order or 0,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
        )


@dataclass
class UserAchievement:
    """An achievement awarded to a user within a community."""

    user_id: UUID
    achievement_id: UUID
    community_id: UUID
    id: UUID = field(default_factory=uuid4)
    earned_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)
    is_public: bool = True
    shared_at: datetime | None = None
    # Definition, attached when returned to callers
    achievement: Achievement | None = None

    @classmethod
    def from_row(cls, row: Any) -> "UserAchievement":
        """Create UserAchievement from Cassandra row."""
        return cls(
            id=row.id,
            user_id=row.user_id,
            achievement_id=row.achievement_id,
            community_id=row.community_id,
            earned_at=ensure_utc_aware(row.earned_at) or datetime.now(UTC),
            metadata=json.loads(row.metadata) if row.metadata else {},
            is_public=row.is_public if row.is_public is not None else True,
            shared_at=ensure_utc_aware(row.shared_at),
        )


@dataclass(frozen=True)
class AchievementProgress:
    """How far a user is towards an achievement."""

    current: int
    target: int
    percentage: float

    @property
    def is_met(self) -> bool:
        return self.percentage >= 100
