"""Pydantic schemas for achievements.

Request and response models for:
- Achievement creation
- Achievement listings, with or without user progress
- Awarded achievements
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import Achievement, AchievementCriteria, AchievementProgress, UserAchievement


# ==============================================================================
# Criteria Schemas
# ==============================================================================


class CriteriaSchema(BaseModel):
    """Achievement criteria; the type is checked by the service."""

    type: str | None = Field(default=None, examples=["count_completed"])
    content_type: str | None = Field(default=None, examples=["course"])
    count: int | None = None
    time_minutes: int | None = None
    days: int | None = None
    points: int | None = None
    months_since_join: int | None = None

    def to_entity(self) -> AchievementCriteria:
        return AchievementCriteria(**self.model_dump())

    @classmethod
    def from_entity(cls, entity: AchievementCriteria) -> "CriteriaSchema":
        return cls(**entity.to_dict())


# ==============================================================================
# Achievement Schemas
# ==============================================================================


class CreateAchievementRequest(BaseModel):
    """Request to define a new achievement."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., max_length=2000)
    icon: str | None = Field(default=None, examples=["trophy-gold"])
    criteria: CriteriaSchema
    community_id: UUID | None = Field(
        default=None, description="Owning community, global when omitted"
    )
    rarity: str = Field(default="common", examples=["rare"])
    points: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    order: int = 0
    is_active: bool = True


class AchievementResponse(BaseModel):
    """Achievement definition."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    icon: str | None = None
    criteria: CriteriaSchema
    community_id: UUID | None = None
    is_active: bool
    rarity: str
    points: int
    tags: list[str] = []
    order: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, entity: Achievement) -> "AchievementResponse":
        """Create response from entity."""
        return cls(
            id=entity.id,
            name=entity.name,
            description=entity.description,
            icon=entity.icon,
            criteria=CriteriaSchema.from_entity(entity.criteria),
            community_id=entity.community_id,
            is_active=entity.is_active,
            rarity=entity.rarity,
            points=entity.points,
            tags=entity.tags,
            order=entity.order,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class AchievementWithProgressResponse(AchievementResponse):
    """Achievement with the current user's status.

    Unlocked entries carry ``earned_at`` and ``user_achievement_id``; locked
    entries carry live progress.
    """

    is_unlocked: bool
    earned_at: datetime | None = None
    user_achievement_id: UUID | None = None
    progress: float | None = Field(default=None, description="0-100 percentage")
    current_value: int | None = None
    target_value: int | None = None

    @classmethod
    def unlocked(
        cls, achievement: Achievement, user_achievement: UserAchievement
    ) -> "AchievementWithProgressResponse":
        return cls(
            **AchievementResponse.from_entity(achievement).model_dump(),
            is_unlocked=True,
            earned_at=user_achievement.earned_at,
            user_achievement_id=user_achievement.id,
        )

    @classmethod
    def locked(
        cls, achievement: Achievement, progress: AchievementProgress
    ) -> "AchievementWithProgressResponse":
        return cls(
            **AchievementResponse.from_entity(achievement).model_dump(),
            is_unlocked=False,
            progress=progress.percentage,
            current_value=progress.current,
            target_value=progress.target,
        )


# ==============================================================================
# User Achievement Schemas
# ==============================================================================


class UserAchievementResponse(BaseModel):
    """An awarded achievement."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    achievement_id: UUID
    community_id: UUID
    earned_at: datetime
    metadata: dict[str, Any] = {}
    is_public: bool = True
    shared_at: datetime | None = None
    achievement: AchievementResponse | None = None

    @classmethod
    def from_entity(cls, entity: UserAchievement) -> "UserAchievementResponse":
        """Create response from entity."""
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            achievement_id=entity.achievement_id,
            community_id=entity.community_id,
            earned_at=entity.earned_at,
            metadata=entity.metadata,
            is_public=entity.is_public,
            shared_at=entity.shared_at,
            achievement=AchievementResponse.from_entity(entity.achievement)
            if entity.achievement
            else None,
        )
