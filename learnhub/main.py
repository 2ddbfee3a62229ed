"""learnhub API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnhub.achievements.repository import (
    AchievementRepository,
    UserAchievementRepository,
)
from learnhub.achievements.router import router as achievements_router
from learnhub.achievements.service import AchievementService
from learnhub.catalog.repository import (
    CommunityRepository,
    CourseRepository,
    UserDirectory,
)
from learnhub.config import Settings, get_settings
from learnhub.core.context import get_request_id
from learnhub.core.database import init_async_cassandra, shutdown_async_cassandra
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware
from learnhub.core.redis import init_redis, shutdown_redis
from learnhub.health.router import router as health_router
from learnhub.notifications.service import NotificationService
from learnhub.progress.repository import CompletionRepository, EnrollmentRepository
from learnhub.progress.router import router as progress_router
from learnhub.progress.service import ProgressionService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


class AppState:
    """Application state container."""

    cassandra_session: Any = None
    notification_service: NotificationService | None = None
    progression_service: ProgressionService | None = None
    achievement_service: AchievementService | None = None


app_state = AppState()


def build_services(
    session: Any, keyspace: str, redis: Any, settings: Settings
) -> tuple[NotificationService, ProgressionService, AchievementService]:
    """Wire repositories and services over one Cassandra session."""
    notification_service = NotificationService(
        session=session, keyspace=keyspace, redis=redis
    )
    completions = CompletionRepository(session, keyspace)

    progression_service = ProgressionService(
        courses=CourseRepository(session, keyspace),
        users=UserDirectory(session, keyspace),
        enrollments=EnrollmentRepository(session, keyspace),
        completions=completions,
        notifications=notification_service,
    )
    achievement_service = AchievementService(
        achievements=AchievementRepository(session, keyspace),
        user_achievements=UserAchievementRepository(session, keyspace),
        communities=CommunityRepository(session, keyspace),
        completions=completions,
        notifications=notification_service,
        settings=settings,
    )
    return notification_service, progression_service, achievement_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - real-time notifications disabled",
        )

    try:
        app_state.cassandra_session = await init_async_cassandra()
        app.state.cassandra_session = app_state.cassandra_session
        logger.info("cassandra_initialized")

        (
            app_state.notification_service,
            app_state.progression_service,
            app_state.achievement_service,
        ) = build_services(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
            redis=redis_client,
            settings=settings,
        )
        app.state.notification_service = app_state.notification_service
        app.state.progression_service = app_state.progression_service
        app.state.achievement_service = app_state.achievement_service
        logger.info(
            "services_initialized", redis_enabled=redis_client is not None
        )
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def _error_message(detail: Any) -> str:
    if isinstance(detail, dict):
        return str(detail.get("message", ""))
    return str(detail)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug stays False so Starlette never renders stack traces
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course progression and achievement API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=_error_message(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        content: dict[str, Any] = {
            "error": True,
            "message": _error_message(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error",
            "status_code": exc.status_code,
            "request_id": request_id,
        }
        # Structured details, e.g. the chapter required by sequential progression
        if isinstance(exc.detail, dict):
            content["details"] = {
                k: v for k, v in exc.detail.items() if k != "message"
            }

        return ORJSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Details are logged; the response carries a generic message only.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    app.include_router(health_router)
    app.include_router(progress_router)
    app.include_router(achievements_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "learnhub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
