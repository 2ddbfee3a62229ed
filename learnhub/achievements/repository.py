# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Cassandra persistence for achievement definitions and awards."""

import json
from typing import TYPE_CHECKING
from uuid import UUID

from .models import GLOBAL_SCOPE, Achievement, UserAchievement, scope_for


if TYPE_CHECKING:
    from cassandra.cluster import Session


class AchievementRepository:
    """Achievement definitions grouped by scope."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_achievement = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.achievements
            (scope, id, name, description, icon, criteria, community_id,
             is_active, rarity, points, tags, display_order, created_at,
             updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_by_scope = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.achievements WHERE scope = ?
        """)

    async def create(self, achievement: Achievement) -> Achievement:
        await self.session.aexecute(
            self._insert_achievement,
            [
                achievement.scope,
                achievement.id,
                achievement.name,
                achievement.description,
                achievement.icon,
                json.dumps(achievement.criteria.to_dict()),
                achievement.community_id,
                achievement.is_active,
                achievement.rarity,
                achievement.points,
                achievement.tags,
                achievement.order,
                achievement.created_at,
                achievement.updated_at,
            ],
        )
        return achievement

    async def _list_scope(self, scope: str) -> list[Achievement]:
        result = await self.session.aexecute(self._get_by_scope, [scope])
        return [Achievement.from_row(row) for row in result]

    async def list_active(self, community_id: UUID | None = None) -> list[Achievement]:
        """Active global achievements plus those of ``community_id`` (unsorted)."""
        achievements = await self._list_scope(GLOBAL_SCOPE)
        if community_id:
            achievements += await self._list_scope(scope_for(community_id))
        return [a for a in achievements if a.is_active]


class UserAchievementRepository:
    """Awards per (user, community)."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._insert_award = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.user_achievements
            (user_id, community_id, achievement_id, id, earned_at, metadata,
             is_public, shared_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._list_awards = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.user_achievements
            WHERE user_id = ? AND community_id = ?
        """)

    async def list_for_user(
        self, user_id: UUID, community_id: UUID
    ) -> list[UserAchievement]:
        result = await self.session.aexecute(
            self._list_awards, [user_id, community_id]
        )
        return [UserAchievement.from_row(row) for row in result]

    async def award(self, user_achievement: UserAchievement) -> bool:
        """Insert an award unless one already exists.

        Returns:
            False when the user already held the achievement
        """
        result = await self.session.aexecute(
            self._insert_award,
            [
                user_achievement.user_id,
                user_achievement.community_id,
                user_achievement.achievement_id,
                user_achievement.id,
                user_achievement.earned_at,
                json.dumps(user_achievement.metadata),
                user_achievement.is_public,
                user_achievement.shared_at,
            ],
        )
        return bool(result.was_applied)
