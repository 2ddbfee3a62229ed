"""Tests for achievement persistence over a mocked session."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from learnhub.achievements.models import (
    Achievement,
    AchievementCriteria,
    UserAchievement,
)
from learnhub.achievements.repository import (
    AchievementRepository,
    UserAchievementRepository,
)


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    session.prepare = Mock(side_effect=lambda query: Mock(query=query))
    session.aexecute = AsyncMock(return_value=Mock(was_applied=True))
    return session


def _definition_row(community_id=None, is_active=True, display_order=0) -> Mock:
    row = Mock(
        id=uuid4(),
        description="Complete two courses",
        icon=None,
        criteria=json.dumps(
            {"type": "count_completed", "content_type": "course", "count": 2}
        ),
        community_id=community_id,
        is_active=is_active,
        rarity="rare",
        points=20,
        tags=None,
        display_order=display_order,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )
    row.name = "Two courses"
    return row


class TestAchievementRepository:
    """Tests for AchievementRepository."""

    @pytest.mark.asyncio
    async def test_create_writes_scope_and_criteria(self, mock_session):
        """Definitions are partitioned by scope with criteria as JSON."""
        community_id = uuid4()
        achievement = Achievement(
            name="Two courses",
            description="",
            criteria=AchievementCriteria(
                type="count_completed", content_type="course", count=2
            ),
            community_id=community_id,
            order=4,
        )

        await AchievementRepository(mock_session, "ks").create(achievement)

        params = mock_session.aexecute.call_args.args[1]
        assert params[0] == str(community_id)
        assert json.loads(params[5]) == {
            "type": "count_completed",
            "content_type": "course",
            "count": 2,
        }
        assert params[11] == 4

    @pytest.mark.asyncio
    async def test_list_active_merges_global_and_community(self, mock_session):
        """Global and community partitions are both read; inactive rows dropped."""
        community_id = uuid4()
        mock_session.aexecute.side_effect = [
            [_definition_row(), _definition_row(is_active=False)],
            [_definition_row(community_id, display_order=3)],
        ]

        result = await AchievementRepository(mock_session, "ks").list_active(
            community_id
        )

        assert len(result) == 2
        assert result[1].order == 3
        assert result[1].criteria.count == 2
        scopes = [c.args[1] for c in mock_session.aexecute.call_args_list]
        assert scopes == [["global"], [str(community_id)]]

    @pytest.mark.asyncio
    async def test_row_timestamps_are_utc_aware(self, mock_session):
        """Naive Cassandra timestamps are read back as UTC."""
        row = _definition_row()
        row.created_at = datetime(2024, 1, 2, 3, 4, 5)
        row.updated_at = datetime(2024, 1, 2, 3, 4, 5)
        mock_session.aexecute.side_effect = [[row]]

        result = await AchievementRepository(mock_session, "ks").list_active()

        assert result[0].created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert result[0].updated_at.tzinfo is UTC

    @pytest.mark.asyncio
    async def test_list_active_global_only(self, mock_session):
        mock_session.aexecute.side_effect = [[_definition_row()]]

        result = await AchievementRepository(mock_session, "ks").list_active()

        assert len(result) == 1
        assert mock_session.aexecute.await_count == 1


class TestUserAchievementRepository:
    """Tests for UserAchievementRepository."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("applied", [True, False])
    async def test_award_reports_whether_applied(self, mock_session, applied):
        """A conditional insert that is not applied means already awarded."""
        mock_session.aexecute.return_value = Mock(was_applied=applied)
        award = UserAchievement(
            user_id=uuid4(),
            achievement_id=uuid4(),
            community_id=uuid4(),
            metadata={"progress_at_earn": 2},
        )

        result = await UserAchievementRepository(mock_session, "ks").award(award)

        assert result is applied
        statement, params = mock_session.aexecute.call_args.args
        assert "IF NOT EXISTS" in statement.query
        assert json.loads(params[5]) == {"progress_at_earn": 2}

    @pytest.mark.asyncio
    async def test_list_for_user(self, mock_session):
        user_id, community_id = uuid4(), uuid4()
        row = Mock(
            id=uuid4(),
            user_id=user_id,
            achievement_id=uuid4(),
            community_id=community_id,
            earned_at=datetime(2024, 1, 2, 3, 4, 5),
            metadata=None,
            is_public=None,
            shared_at=None,
        )
        mock_session.aexecute.return_value = [row]

        result = await UserAchievementRepository(mock_session, "ks").list_for_user(
            user_id, community_id
        )

        assert result[0].metadata == {}
        assert result[0].is_public is True
        assert result[0].earned_at.tzinfo is UTC
