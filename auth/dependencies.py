"""
auth/dependencies.py -- FastAPI Depends() helpers wrapping the gate pipeline.

The gates in auth/gates.py are framework-free. This module is the one place
that translates between them and FastAPI:

  Request -> RequestContext: the Authorization header and the request id set
      by the host's request-id middleware (request.state.request_id).

  Terminate -> GateRejected: raised so FastAPI stops before the route body.
      The host registers an exception handler that writes rejection.to_body()
      with the rejection's status code.

  Continue -> the attached Principal (or None), also stored on
      request.state.principal for middleware that logs it.

The TokenCodec is read from request.app.state.token_codec, which the host
builds once at startup from the immutable AuthConfig.

try_get_principal() is the soft variant (returns None on any failure).
get_current_principal() raises GateRejected with 401 if unauthenticated.
role_required(*roles) builds a dependency that authenticates and then checks
the role, raising GateRejected with 401/403.

Layer rule: may import fastapi (part of the DI system); no imports from api/
or core/.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import Optional, cast

from fastapi import Request

from auth.gates import AuthenticationGate, OptionalAuthenticationGate, require_role
from auth.models import Principal
from auth.pipeline import Rejection, RequestContext, Stage, Terminate, run_pipeline
from auth.tokens import TokenCodec


class GateRejected(Exception):
    """A gate terminated the pipeline; carries the response to write."""

    def __init__(self, rejection: Rejection) -> None:
        super().__init__(rejection.message)
        self.rejection = rejection


def request_context(request: Request) -> RequestContext:
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    return RequestContext(request_id=request_id, authorization=request.headers.get("Authorization"))


def _codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def _run(request: Request, stages: list[Stage]) -> Optional[Principal]:
    result = run_pipeline(stages, request_context(request))
    if isinstance(result, Terminate):
        raise GateRejected(result.rejection)
    principal = result.context.principal
    request.state.principal = principal
    return principal


def try_get_principal(request: Request) -> Optional[Principal]:
    """Optional authentication. Never raises; None when unauthenticated.

    Use as a FastAPI dependency:
        @router.get("/catalog")
        async def route(principal: Principal | None = Depends(try_get_principal)): ...
    """
    return _run(request, [OptionalAuthenticationGate(_codec(request))])


def get_current_principal(request: Request) -> Principal:
    """Require authentication. Raises GateRejected (401) if not authenticated."""
    # AuthenticationGate never continues without a Principal.
    return cast(Principal, _run(request, [AuthenticationGate(_codec(request))]))


def role_required(*allowed_roles: str) -> Callable[[Request], Principal]:
    """Build a dependency that requires authentication AND one of allowed_roles.

    The role gate is built here, at route-definition time, so an empty role
    list fails at import rather than on the first request.

        @router.get("/admin", dependencies=[Depends(role_required("admin"))])
    """
    role_gate = require_role(*allowed_roles)

    def dependency(request: Request) -> Principal:
        return cast(Principal, _run(request, [AuthenticationGate(_codec(request)), role_gate]))

    return dependency
