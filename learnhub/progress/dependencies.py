"""FastAPI dependencies for course progression."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProgressionService


async def get_progression_service(request: Request) -> ProgressionService:
    """Get progression service from app state."""
    app_state = request.app.state
    if (
        not hasattr(app_state, "progression_service")
        or not app_state.progression_service
    ):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progression service not available",
        )
    return app_state.progression_service


# Type alias for dependency injection
ProgressionServiceDep = Annotated[
    ProgressionService, Depends(get_progression_service)
]
