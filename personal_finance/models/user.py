"""Authenticated caller, as returned by an auth provider."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    uid: str = Field(..., min_length=1, description="Stable user identifier")
    email: Optional[str] = None
    claims: dict[str, Any] = Field(
        default_factory=dict,
        description="All verified token claims"
    )
