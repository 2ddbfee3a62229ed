"""Achievement criteria validation and progress arithmetic."""

from learnhub.core.exceptions import InvalidArgumentError

from .models import AchievementCriteria, AchievementProgress, CriteriaType, Rarity


KNOWN_CRITERIA_TYPES = frozenset(t.value for t in CriteriaType)
KNOWN_RARITIES = frozenset(r.value for r in Rarity)


def validate_criteria(criteria: AchievementCriteria | None) -> None:
    """Reject criteria that cannot be evaluated.

    Raises:
        InvalidArgumentError: If the type is missing or unknown, or a
            count_completed criteria has no positive count
    """
    if criteria is None or not criteria.type:
        raise InvalidArgumentError("Criteria must have a type")

    if criteria.type not in KNOWN_CRITERIA_TYPES:
        raise InvalidArgumentError(f"Invalid criteria type: {criteria.type}")

    if criteria.type == CriteriaType.COUNT_COMPLETED.value and (
        not criteria.count or criteria.count < 1
    ):
        raise InvalidArgumentError("Count must be >= 1 for count_completed")


def validate_rarity(rarity: str) -> None:
    if rarity not in KNOWN_RARITIES:
        allowed = ", ".join(sorted(KNOWN_RARITIES))
        raise InvalidArgumentError(f"Invalid rarity: {rarity} (expected {allowed})")


def build_progress(current: int, target: int) -> AchievementProgress:
    """Progress with percentage capped at 100; targets below 1 count as 1."""
    target = max(target, 1)
    current = max(current, 0)
    return AchievementProgress(
        current=current,
        target=target,
        percentage=min(100.0, current / target * 100),
    )
