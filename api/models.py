"""
API response models for the LearnLite auth host.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from auth/models.py, which owns the domain types; route handlers map
between the two. The error envelope lives in auth/models.py because the
gates produce it.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Principal


class PrincipalOut(BaseModel):
    """Wire form of an authenticated principal."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subject_id: int = Field(alias="subjectId")
    email: str
    role: str

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalOut":
        return cls(subject_id=principal.subject_id, email=principal.email, role=principal.role)


class PrincipalResponse(BaseModel):
    """Response for endpoints that return the caller's identity."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    data: PrincipalOut


class SessionOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    authenticated: bool
    principal: Optional[PrincipalOut] = None


class SessionResponse(BaseModel):
    """Response for GET /api/v1/auth/session (optional authentication)."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    data: SessionOut


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
