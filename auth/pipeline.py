"""
auth/pipeline.py -- Request gate pipeline.

Pattern: Chain of Responsibility with explicit results. Each stage takes the
RequestContext and returns either Continue(context) -- possibly a new context
with a Principal attached -- or Terminate(rejection). run_pipeline() feeds
stages in order and stops at the first Terminate, so a rejected request never
reaches a later stage.

RequestContext is frozen. A stage that attaches a Principal returns a new
context via with_principal(); nothing is mutated in place, so the same
context can be replayed through a different pipeline safely.

Layer rule: framework-free. No imports from api/, core/, or fastapi.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Union

from auth.models import ErrorDetail, ErrorResponse, Principal


def _utc_timestamp() -> str:
    # 2024-05-01T12:00:00.000Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RequestContext:
    """Everything a gate needs to know about one request."""

    request_id: str
    authorization: Optional[str] = None
    principal: Optional[Principal] = None

    def with_principal(self, principal: Principal) -> RequestContext:
        return replace(self, principal=principal)


@dataclass(frozen=True)
class Rejection:
    """A response a gate has decided to write instead of continuing."""

    status_code: int
    code: str
    message: str
    request_id: str
    timestamp: str = field(default_factory=_utc_timestamp)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                request_id=self.request_id,
                timestamp=self.timestamp,
            )
        )

    def to_body(self) -> dict:
        return self.to_response().to_body()


@dataclass(frozen=True)
class Continue:
    context: RequestContext


@dataclass(frozen=True)
class Terminate:
    rejection: Rejection


GateResult = Union[Continue, Terminate]
Stage = Callable[[RequestContext], GateResult]


def run_pipeline(stages: Iterable[Stage], context: RequestContext) -> GateResult:
    """Run stages in order; return the first Terminate or the final Continue."""
    result: GateResult = Continue(context)
    for stage in stages:
        result = stage(result.context)
        if isinstance(result, Terminate):
            return result
    return result
