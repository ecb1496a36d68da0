"""
auth/gates.py -- Authentication and role-authorization pipeline stages.

Three gates, each a callable Stage (see auth/pipeline.py):

  AuthenticationGate          -- mandatory. Missing/garbled header, empty
                                 token, or any verification failure rejects
                                 with 401.
  OptionalAuthenticationGate  -- same extraction and verification, but every
                                 failure continues without a Principal. Never
                                 rejects.
  RoleAuthorizationGate       -- runs after one of the above. 401 when no
                                 Principal is attached, 403 when the role is
                                 not in the allowed set.

Security notes:
  [G1] Malformed, forged and expired tokens all collapse to one external
       answer (INVALID_TOKEN, "Invalid or expired token") so a caller cannot
       probe which check failed.
  [G2] Anything else raised during verification becomes AUTH_ERROR with a
       generic message. The exception goes to the log with the request id,
       never into the response body.
  [G3] The role claim of a verified token is trusted as-is. It is compared
       exactly (case-sensitive, no trimming) and never re-checked against
       the Role enum here -- only the issuing path validates membership.

Layer rule: framework-free. No imports from api/, core/, or fastapi.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.errors import InvalidConfig, TokenError
from auth.pipeline import Continue, GateResult, Rejection, RequestContext, Terminate
from auth.tokens import TokenCodec

logger = logging.getLogger("learnlite.auth")

BEARER_PREFIX = "Bearer "

UNAUTHORIZED = "UNAUTHORIZED"
INVALID_TOKEN = "INVALID_TOKEN"
FORBIDDEN = "FORBIDDEN"
AUTH_ERROR = "AUTH_ERROR"


class _MissingHeader(Exception):
    pass


class _EmptyToken(Exception):
    pass


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an "Authorization: Bearer <token>" value.

    The scheme prefix is case-sensitive and must be followed by exactly one
    space; whatever follows is the token, unmodified.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise _MissingHeader()
    token = authorization[len(BEARER_PREFIX) :]
    if not token:
        raise _EmptyToken()
    return token


class AuthenticationGate:
    """Mandatory authentication: attach a Principal or reject with 401."""

    def __init__(self, codec: TokenCodec) -> None:
        self._codec = codec

    def __call__(self, context: RequestContext) -> GateResult:
        try:
            token = extract_bearer_token(context.authorization)
        except _MissingHeader:
            return self._reject(
                context,
                UNAUTHORIZED,
                "Missing or invalid Authorization header. Expected: Bearer <token>",
            )
        except _EmptyToken:
            return self._reject(context, UNAUTHORIZED, "No token provided")

        try:
            principal = self._codec.verify(token)
        except TokenError as exc:
            logger.info("[%s] Token rejected: %s", context.request_id, type(exc).__name__)
            return self._reject(context, INVALID_TOKEN, "Invalid or expired token")  # [G1]
        except Exception:
            logger.exception("[%s] Unexpected error during token verification", context.request_id)
            return self._reject(context, AUTH_ERROR, "Authentication failed")  # [G2]

        return Continue(context.with_principal(principal))

    @staticmethod
    def _reject(context: RequestContext, code: str, message: str) -> Terminate:
        return Terminate(Rejection(status_code=401, code=code, message=message, request_id=context.request_id))


class OptionalAuthenticationGate:
    """Best-effort authentication. Always continues; attaches a Principal only on success."""

    def __init__(self, codec: TokenCodec) -> None:
        self._codec = codec

    def __call__(self, context: RequestContext) -> GateResult:
        try:
            token = extract_bearer_token(context.authorization)
            principal = self._codec.verify(token)
        except (_MissingHeader, _EmptyToken, TokenError):
            return Continue(context)
        except Exception:
            logger.debug("[%s] Optional authentication failed", context.request_id, exc_info=True)
            return Continue(context)
        return Continue(context.with_principal(principal))


class RoleAuthorizationGate:
    """RBAC check against an allowed-role list, kept in call order for messages."""

    def __init__(self, *allowed_roles: str) -> None:
        if not allowed_roles:
            raise InvalidConfig("RoleAuthorizationGate needs at least one allowed role")
        self._allowed_roles = tuple(allowed_roles)

    @property
    def allowed_roles(self) -> tuple[str, ...]:
        return self._allowed_roles

    def __call__(self, context: RequestContext) -> GateResult:
        principal = context.principal
        if principal is None:
            return Terminate(
                Rejection(
                    status_code=401,
                    code=UNAUTHORIZED,
                    message="Authentication required",
                    request_id=context.request_id,
                )
            )
        if principal.role not in self._allowed_roles:  # [G3]
            logger.info(
                "[%s] Role %r denied (required: %s)",
                context.request_id,
                principal.role,
                ", ".join(self._allowed_roles),
            )
            return Terminate(
                Rejection(
                    status_code=403,
                    code=FORBIDDEN,
                    message=(
                        f"Access denied. Required role(s): {', '.join(self._allowed_roles)}. "
                        f"Your role: {principal.role}"
                    ),
                    request_id=context.request_id,
                )
            )
        return Continue(context)


def require_role(*allowed_roles: str) -> RoleAuthorizationGate:
    """Build a RoleAuthorizationGate, e.g. require_role("admin", "instructor")."""
    return RoleAuthorizationGate(*allowed_roles)
