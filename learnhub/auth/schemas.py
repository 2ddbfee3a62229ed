"""Pydantic schemas for the authenticated principal."""

from uuid import UUID

from pydantic import BaseModel, Field

from .permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Identity extracted from a verified access token."""

    id: UUID = Field(..., description="User UUID (token subject)")
    email: str | None = None
    role: UserRole = UserRole.USER
