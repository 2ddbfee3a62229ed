"""Achievement API endpoints.

Provides routes for:
- Achievement creation (teachers and admins)
- Achievement listings
- User progress towards achievements
- Award checks
"""

from fastapi import APIRouter, Query, status

from learnhub.auth.dependencies import CurrentUser, TeacherUser
from learnhub.core.context import bind_community
from learnhub.core.exceptions import DomainError, handle_domain_error

from .dependencies import AchievementServiceDep
from .schemas import (
    AchievementResponse,
    AchievementWithProgressResponse,
    CreateAchievementRequest,
    UserAchievementResponse,
)


router = APIRouter(prefix="/v1/achievements", tags=["achievements"])


@router.post(
    "",
    response_model=AchievementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create achievement",
)
async def create_achievement(
    data: CreateAchievementRequest,
    achievement_service: AchievementServiceDep,
    _user: TeacherUser,
) -> AchievementResponse:
    """Define a new achievement (global when no community is given)."""
    try:
        achievement = await achievement_service.create_achievement(
            name=data.name,
            description=data.description,
            criteria=data.criteria.to_entity(),
            icon=data.icon,
            community_id=data.community_id,
            rarity=data.rarity,
            points=data.points,
            tags=data.tags,
            order=data.order,
            is_active=data.is_active,
        )
        return AchievementResponse.from_entity(achievement)
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.get(
    "",
    response_model=list[AchievementResponse],
    summary="List achievements",
)
async def list_achievements(
    achievement_service: AchievementServiceDep,
    community_slug: str | None = Query(default=None, description="Community slug"),
) -> list[AchievementResponse]:
    """Active achievements of a community plus global ones."""
    try:
        achievements = await achievement_service.get_achievements_for_community(
            community_slug
        )
        return [AchievementResponse.from_entity(a) for a in achievements]
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.get(
    "/user",
    response_model=list[AchievementWithProgressResponse],
    summary="List achievements with progress",
)
async def list_user_achievements(
    achievement_service: AchievementServiceDep,
    user: CurrentUser,
    community_slug: str = Query(..., description="Community slug"),
) -> list[AchievementWithProgressResponse]:
    """Current user's unlocked achievements and progress on the rest."""
    try:
        return await achievement_service.get_user_achievements_with_progress(
            user.id, community_slug
        )
    except DomainError as e:
        raise handle_domain_error(e) from e


@router.post(
    "/check",
    response_model=list[UserAchievementResponse],
    summary="Check and award achievements",
)
async def check_achievements(
    achievement_service: AchievementServiceDep,
    user: CurrentUser,
    community_slug: str = Query(..., description="Community slug"),
) -> list[UserAchievementResponse]:
    """Award every achievement the current user now qualifies for."""
    try:
        community = await achievement_service.get_community_by_slug(community_slug)
        bind_community(str(community.id))
        awarded = await achievement_service.check_achievements(user.id, community.id)
        return [UserAchievementResponse.from_entity(ua) for ua in awarded]
    except DomainError as e:
        raise handle_domain_error(e) from e
