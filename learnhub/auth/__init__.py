"""Bearer token authentication and role checks."""

from learnhub.auth.dependencies import CurrentUser, TeacherUser, get_current_user
from learnhub.auth.permissions import UserRole, has_permission
from learnhub.auth.schemas import AuthenticatedUser


__all__ = [
    "AuthenticatedUser",
    "CurrentUser",
    "TeacherUser",
    "UserRole",
    "get_current_user",
    "has_permission",
]
