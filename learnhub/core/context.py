"""Request context management using contextvars.

Every request gets a request ID; once authentication and routing run, the
acting user and the course or community being worked on are bound too, so
progression and achievement log lines can be correlated without threading
identifiers through every call.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
course_id_var: ContextVar[str | None] = ContextVar("course_id", default=None)
community_id_var: ContextVar[str | None] = ContextVar("community_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def _as_str(value: str | UUID | None) -> str | None:
    return str(value) if value is not None else None


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    """Set the acting user for the current context."""
    user_id_var.set(_as_str(user_id))


def bind_course(course_id: str | UUID | None) -> None:
    """Attach the course being progressed to the current context."""
    course_id_var.set(_as_str(course_id))


def bind_community(community_id: str | UUID | None) -> None:
    """Attach the community whose achievements are evaluated."""
    community_id_var.set(_as_str(community_id))


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    values = {
        "request_id": request_id_var.get(),
        "correlation_id": correlation_id_var.get(),
        "user_id": user_id_var.get(),
        "course_id": course_id_var.get(),
        "community_id": community_id_var.get(),
    }
    return {key: value for key, value in values.items() if value}


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request to prevent leakage between requests.
    """
    request_id_var.set("")
    correlation_id_var.set(None)
    user_id_var.set(None)
    course_id_var.set(None)
    community_id_var.set(None)


class RequestContext:
    """Context manager for a unit of work outside the HTTP stack.

    Usage:
        with RequestContext(user_id=user_id, course_id=course_id):
            await progression.complete_course(user_id, course_id)
    """

    def __init__(
        self,
        request_id: str | None = None,
        user_id: str | UUID | None = None,
        course_id: str | UUID | None = None,
        community_id: str | UUID | None = None,
    ) -> None:
        self._values: dict[ContextVar, str | None] = {
            request_id_var: request_id or generate_request_id(),
            user_id_var: _as_str(user_id),
            course_id_var: _as_str(course_id),
            community_id_var: _as_str(community_id),
        }
        self._tokens: list[tuple[ContextVar, Any]] = []

    def __enter__(self) -> "RequestContext":
        """Enter context and set variables."""
        for var, value in self._values.items():
            if value is not None:
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
