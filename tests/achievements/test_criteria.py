"""Tests for criteria validation and progress arithmetic."""

import pytest

from learnhub.achievements.criteria import (
    build_progress,
    validate_criteria,
    validate_rarity,
)
from learnhub.achievements.models import AchievementCriteria
from learnhub.core.exceptions import InvalidArgumentError


class TestValidateCriteria:
    """Tests for validate_criteria."""

    @pytest.mark.parametrize(
        "criteria",
        [
            AchievementCriteria(type="count_completed", content_type="course", count=3),
            AchievementCriteria(type="time_spent", time_minutes=90),
            AchievementCriteria(type="streak_days", days=7),
            AchievementCriteria(type="community_join_date", months_since_join=12),
        ],
    )
    def test_valid_criteria(self, criteria: AchievementCriteria) -> None:
        validate_criteria(criteria)

    @pytest.mark.parametrize(
        "criteria,match",
        [
            (None, "must have a type"),
            (AchievementCriteria(), "must have a type"),
            (AchievementCriteria(type="login_count"), "Invalid criteria type"),
            (AchievementCriteria(type="count_completed"), "Count must be >= 1"),
            (AchievementCriteria(type="count_completed", count=0), "Count must be >= 1"),
        ],
    )
    def test_invalid_criteria(self, criteria, match: str) -> None:
        with pytest.raises(InvalidArgumentError, match=match):
            validate_criteria(criteria)


class TestValidateRarity:
    """Tests for validate_rarity."""

    @pytest.mark.parametrize("rarity", ["common", "rare", "epic", "legendary"])
    def test_known_rarities(self, rarity: str) -> None:
        validate_rarity(rarity)

    def test_unknown_rarity(self) -> None:
        with pytest.raises(InvalidArgumentError, match="mythic"):
            validate_rarity("mythic")


class TestBuildProgress:
    """Tests for build_progress."""

    def test_partial(self) -> None:
        progress = build_progress(1, 2)

        assert progress.current == 1
        assert progress.target == 2
        assert progress.percentage == 50.0
        assert progress.is_met is False

    def test_capped_at_100(self) -> None:
        """Exceeding the target still reports 100%."""
        progress = build_progress(5, 2)

        assert progress.percentage == 100.0
        assert progress.is_met is True

    def test_target_below_one(self) -> None:
        """A zero target is treated as one."""
        progress = build_progress(0, 0)

        assert progress.target == 1
        assert progress.percentage == 0.0
