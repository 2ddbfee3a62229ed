"""Achievement evaluation service layer.

Business logic for:
- Achievement definition and criteria validation
- Progress computation per criteria type
- Idempotent award issuance

Definitions are never mutated here. Awards are inserted one by one; an
award that already exists (for example written by a concurrent check) is
skipped, and a failure part way keeps the awards inserted before it.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from learnhub.config.settings import Settings, get_settings
from learnhub.core.exceptions import NotFoundError

from .criteria import build_progress, validate_criteria, validate_rarity
from .models import (
    Achievement,
    AchievementCriteria,
    AchievementProgress,
    CriteriaType,
    Rarity,
    UserAchievement,
)
from .schemas import AchievementWithProgressResponse


if TYPE_CHECKING:
    from learnhub.catalog.models import Community
    from learnhub.catalog.repository import CommunityRepository
    from learnhub.notifications.service import NotificationService
    from learnhub.progress.repository import CompletionRepository

    from .repository import AchievementRepository, UserAchievementRepository

logger = structlog.get_logger(__name__)


def _sort_definitions(achievements: list[Achievement]) -> list[Achievement]:
    """Order ascending, then newest first."""
    by_created = sorted(achievements, key=lambda a: a.created_at, reverse=True)
    return sorted(by_created, key=lambda a: a.order)


def _progress_sort_key(item: AchievementWithProgressResponse) -> tuple:
    """Unlocked first, then locked by progress descending, ties by order."""
    if item.is_unlocked:
        return (0, 0.0, item.order)
    return (1, -(item.progress or 0.0), item.order)


class AchievementService:
    """Service for achievement definitions and awards."""

    def __init__(
        self,
        achievements: "AchievementRepository",
        user_achievements: "UserAchievementRepository",
        communities: "CommunityRepository",
        completions: "CompletionRepository",
        notifications: "NotificationService | None" = None,
        settings: Settings | None = None,
    ):
        self.achievements = achievements
        self.user_achievements = user_achievements
        self.communities = communities
        self.completions = completions
        self.notifications = notifications
        self.settings = settings or get_settings()

    async def _require_community(self, community_id: UUID) -> "Community":
        community = await self.communities.get_by_id(community_id)
        if not community:
            raise NotFoundError("community")
        return community

    async def get_community_by_slug(self, slug: str) -> "Community":
        """Resolve a community slug.

        Raises:
            NotFoundError: If no community has this slug
        """
        community = await self.communities.get_by_slug(slug)
        if not community:
            raise NotFoundError("community")
        return community

    # ==========================================================================
    # Definitions
    # ==========================================================================

    async def create_achievement(
        self,
        name: str,
        description: str,
        criteria: AchievementCriteria,
        icon: str | None = None,
        community_id: UUID | None = None,
        rarity: str = Rarity.COMMON.value,
        points: int = 0,
        tags: list[str] | None = None,
        order: int = 0,
        is_active: bool = True,
    ) -> Achievement:
        """Define a new achievement.

        Raises:
            InvalidArgumentError: If criteria or rarity are invalid
            NotFoundError: If ``community_id`` names no community
        """
        validate_criteria(criteria)
        validate_rarity(rarity)

        if community_id:
            await self._require_community(community_id)

        achievement = Achievement(
            name=name,
            description=description,
            criteria=criteria,
            icon=icon,
            community_id=community_id,
            rarity=rarity,
            points=points,
            tags=tags or [],
            order=order,
            is_active=is_active,
        )
        await self.achievements.create(achievement)

        logger.info(
            "achievement_created",
            achievement_id=str(achievement.id),
            community_id=str(community_id) if community_id else None,
            criteria_type=criteria.type,
        )
        return achievement

    async def get_achievements_for_community(
        self, community_slug: str | None = None
    ) -> list[Achievement]:
        """Active achievements visible in a community, or global ones only.

        Raises:
            NotFoundError: If ``community_slug`` names no community
        """
        community_id = None
        if community_slug:
            community = await self.get_community_by_slug(community_slug)
            community_id = community.id

        achievements = await self.achievements.list_active(community_id)
        return _sort_definitions(achievements)

    # ==========================================================================
    # Progress
    # ==========================================================================

    async def calculate_progress(
        self, user_id: UUID, community_id: UUID, achievement: Achievement
    ) -> AchievementProgress:
        """Current standing of a user towards an achievement."""
        criteria = achievement.criteria

        if criteria.type == CriteriaType.COUNT_COMPLETED.value:
            current = 0
            if criteria.content_type:
                current = await self.completions.count_completed(
                    user_id=user_id,
                    community_id=community_id,
                    content_type=criteria.content_type,
                    limit=self.settings.achievement_progress_page_size,
                )
            return build_progress(current, criteria.count or 1)

        if criteria.type == CriteriaType.TIME_SPENT.value:
            # No time tracking source yet
            target = (
                criteria.time_minutes
                or self.settings.achievement_default_time_minutes
            )
            return build_progress(0, target)

        return build_progress(0, criteria.count or 1)

    async def get_user_achievements_with_progress(
        self, user_id: UUID, community_slug: str
    ) -> list[AchievementWithProgressResponse]:
        """Every visible achievement with the user's unlock state or progress.

        Raises:
            NotFoundError: If ``community_slug`` names no community
        """
        community = await self.get_community_by_slug(community_slug)
        achievements = await self.get_achievements_for_community(community_slug)

        earned = {
            ua.achievement_id: ua
            for ua in await self.user_achievements.list_for_user(
                user_id, community.id
            )
        }

        results = []
        for achievement in achievements:
            user_achievement = earned.get(achievement.id)
            if user_achievement:
                results.append(
                    AchievementWithProgressResponse.unlocked(
                        achievement, user_achievement
                    )
                )
            else:
                progress = await self.calculate_progress(
                    user_id, community.id, achievement
                )
                results.append(
                    AchievementWithProgressResponse.locked(achievement, progress)
                )

        return sorted(results, key=_progress_sort_key)

    # ==========================================================================
    # Awards
    # ==========================================================================

    async def check_achievements(
        self, user_id: UUID, community_id: UUID
    ) -> list[UserAchievement]:
        """Award every achievement the user now qualifies for.

        Returns:
            Awards created by this call, possibly empty

        Raises:
            NotFoundError: If the community does not exist
        """
        await self._require_community(community_id)

        achievements = await self.achievements.list_active(community_id)
        already_earned = {
            ua.achievement_id
            for ua in await self.user_achievements.list_for_user(
                user_id, community_id
            )
        }

        awarded = []
        for achievement in achievements:
            if achievement.id in already_earned:
                continue

            progress = await self.calculate_progress(
                user_id, community_id, achievement
            )
            if not progress.is_met:
                continue

            user_achievement = UserAchievement(
                user_id=user_id,
                achievement_id=achievement.id,
                community_id=community_id,
                earned_at=datetime.now(UTC),
                metadata={
                    "progress_at_earn": progress.current,
                    "criteria_met": achievement.criteria.to_dict(),
                },
                achievement=achievement,
            )

            if not await self.user_achievements.award(user_achievement):
                logger.info(
                    "achievement_already_awarded",
                    user_id=str(user_id),
                    achievement_id=str(achievement.id),
                )
                continue

            logger.info(
                "achievement_awarded",
                user_id=str(user_id),
                community_id=str(community_id),
                achievement_id=str(achievement.id),
                progress_at_earn=progress.current,
            )
            await self._notify_award(user_achievement)
            awarded.append(user_achievement)

        return awarded

    async def _notify_award(self, user_achievement: UserAchievement) -> None:
        """Send the unlock notification; failures never reach the caller."""
        if not self.notifications or not user_achievement.achievement:
            return

        achievement = user_achievement.achievement
        try:
            await self.notifications.notify_achievement_unlocked(
                user_id=user_achievement.user_id,
                achievement_id=achievement.id,
                achievement_name=achievement.name,
                points=achievement.points,
            )
        except Exception as e:
            logger.warning(
                "achievement_notification_failed",
                user_id=str(user_achievement.user_id),
                achievement_id=str(achievement.id),
                error=str(e),
            )
