"""
api/routes/v1/auth.py -- Identity endpoints guarded by the auth gates.

Routes:
  GET /api/v1/auth/me       -- current principal (requires auth)
  GET /api/v1/auth/session  -- principal if a valid token was sent, else anonymous
  GET /api/v1/auth/staff    -- admin or instructor only
  GET /api/v1/auth/admin    -- admin only

Responses are serialized by_alias so the principal goes out as subjectId.
Rejections never reach these handlers -- the dependencies raise GateRejected
and api/main.py renders the error envelope.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from api.models import PrincipalOut, PrincipalResponse, SessionOut, SessionResponse
from auth.dependencies import get_current_principal, role_required, try_get_principal
from auth.models import Principal, Role

# Auth policy:
# - GET /api/v1/auth/me:       requires auth (get_current_principal)
# - GET /api/v1/auth/session:  optional auth (try_get_principal)
# - GET /api/v1/auth/staff:    requires admin or instructor (role_required)
# - GET /api/v1/auth/admin:    requires admin (role_required)
router = APIRouter()

_require_staff = role_required(Role.ADMIN.value, Role.INSTRUCTOR.value)
_require_admin = role_required(Role.ADMIN.value)


def _principal_response(principal: Principal) -> PrincipalResponse:
    return PrincipalResponse(data=PrincipalOut.from_principal(principal))


@router.get("/auth/me", response_model=PrincipalResponse, response_model_by_alias=True)
def me(principal: Principal = Depends(get_current_principal)) -> PrincipalResponse:
    """Return the principal named by the bearer token."""
    return _principal_response(principal)


@router.get("/auth/session", response_model=SessionResponse, response_model_by_alias=True)
def session(principal: Optional[Principal] = Depends(try_get_principal)) -> SessionResponse:
    """Report whether the request carried a valid token. Never 401s."""
    if principal is None:
        return SessionResponse(data=SessionOut(authenticated=False))
    return SessionResponse(data=SessionOut(authenticated=True, principal=PrincipalOut.from_principal(principal)))


@router.get("/auth/staff", response_model=PrincipalResponse, response_model_by_alias=True)
def staff(principal: Principal = Depends(_require_staff)) -> PrincipalResponse:
    return _principal_response(principal)


@router.get("/auth/admin", response_model=PrincipalResponse, response_model_by_alias=True)
def admin(principal: Principal = Depends(_require_admin)) -> PrincipalResponse:
    return _principal_response(principal)
