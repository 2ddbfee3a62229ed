"""Domain errors shared by the progression and achievement engines.

Each error carries a human-readable ``message`` and a machine ``code``; the
HTTP layer maps codes to status codes (see ``handle_domain_error``).
"""

from fastapi import HTTPException, status


class DomainError(Exception):
    """Base domain error."""

    def __init__(self, message: str, code: str = "domain_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(DomainError):
    """A user, course, section, chapter, enrollment, progress record,
    community or achievement does not exist."""

    def __init__(self, resource: str, message: str | None = None):
        self.resource = resource
        super().__init__(message or f"{resource.capitalize()} not found", "not_found")


class AccessDeniedError(DomainError):
    """Sequential progression refuses access to a chapter."""

    def __init__(
        self,
        message: str,
        reason: str = "previous_not_completed",
        required_chapter_id: str | None = None,
        required_chapter_title: str | None = None,
    ):
        self.reason = reason
        self.required_chapter_id = required_chapter_id
        self.required_chapter_title = required_chapter_title
        super().__init__(message, "access_denied")


class InvalidStateError(DomainError):
    """A structural precondition does not hold (e.g. a section without chapters)."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_state")


class InvalidArgumentError(DomainError):
    """Malformed input, such as unknown achievement criteria."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_argument")


class ConcurrentModificationError(DomainError):
    """The enrollment changed between read and save."""

    def __init__(self, message: str = "Enrollment was modified concurrently"):
        super().__init__(message, "concurrent_modification")


_STATUS_BY_CODE = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "access_denied": status.HTTP_403_FORBIDDEN,
    "invalid_state": status.HTTP_409_CONFLICT,
    "invalid_argument": status.HTTP_400_BAD_REQUEST,
    "concurrent_modification": status.HTTP_409_CONFLICT,
}


def handle_domain_error(error: DomainError) -> HTTPException:
    """Convert a domain error to an HTTPException with the matching status."""
    status_code = _STATUS_BY_CODE.get(
        error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    detail: str | dict = error.message
    if isinstance(error, AccessDeniedError) and error.required_chapter_id:
        detail = {
            "message": error.message,
            "reason": error.reason,
            "required_chapter_id": error.required_chapter_id,
            "required_chapter_title": error.required_chapter_title,
        }

    return HTTPException(status_code=status_code, detail=detail)
