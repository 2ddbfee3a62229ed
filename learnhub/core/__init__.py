# Core infrastructure
from learnhub.core.context import (
    RequestContext,
    bind_community,
    bind_course,
    clear_context,
    get_context,
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from learnhub.core.exceptions import (
    AccessDeniedError,
    ConcurrentModificationError,
    DomainError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    handle_domain_error,
)
from learnhub.core.logging import configure_structlog, get_logger


__all__ = [
    "AccessDeniedError",
    "ConcurrentModificationError",
    "DomainError",
    "InvalidArgumentError",
    "InvalidStateError",
    "NotFoundError",
    "RequestContext",
    "bind_community",
    "bind_course",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "handle_domain_error",
    "set_request_id",
    "set_user_id",
]
