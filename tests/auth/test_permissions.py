"""Tests for role levels and permission checks."""

import pytest

from learnhub.auth.permissions import (
    ROLE_HIERARCHY,
    UserRole,
    get_role_level,
    has_permission,
)


class TestRoleLevels:
    """Tests for ROLE_HIERARCHY and get_role_level."""

    def test_every_role_has_a_level(self) -> None:
        """All UserRole members should have defined levels."""
        assert set(ROLE_HIERARCHY) == set(UserRole)

    @pytest.mark.parametrize(
        "role,expected_level",
        [
            (UserRole.USER, 0),
            ("student", 1),
            (UserRole.TEACHER, 2),
            ("admin", 3),
        ],
    )
    def test_levels(self, role: UserRole | str, expected_level: int) -> None:
        """Enum members and their string values map to the same level."""
        assert get_role_level(role) == expected_level

    def test_unknown_role_is_lowest(self) -> None:
        assert get_role_level("superadmin") == 0


class TestHasPermission:
    """Tests for has_permission."""

    @pytest.mark.parametrize("role", [UserRole.TEACHER, UserRole.ADMIN])
    def test_can_manage_achievements(self, role: UserRole) -> None:
        """Teachers and admins may define achievements."""
        assert has_permission(role, UserRole.TEACHER) is True

    @pytest.mark.parametrize("role", [UserRole.USER, UserRole.STUDENT])
    def test_learners_cannot_manage_achievements(self, role: UserRole) -> None:
        assert has_permission(role, UserRole.TEACHER) is False

    def test_string_roles(self) -> None:
        """Should work with string role values."""
        assert has_permission("teacher", "student") is True
        assert has_permission("user", "admin") is False
