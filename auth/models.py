"""
auth/models.py -- Domain types for authentication.

Pattern: dataclasses own the trusted domain shape (Identity, Principal);
pydantic models own anything parsed from untrusted input (TokenClaims) or
serialized onto the wire (ErrorResponse). TokenClaims runs in strict mode so
a claim of the wrong type is rejected, never coerced -- "1" is not a subject
id and true is not a timestamp.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Role(str, Enum):
    """Roles known to the platform.

    Only the issuing path (registration) checks membership. Gates compare the
    role claim as an opaque string.
    """

    ADMIN = "admin"
    INSTRUCTOR = "instructor"
    STUDENT = "student"

    @classmethod
    def is_known(cls, value: str) -> bool:
        return value in cls._value2member_map_


@dataclass(frozen=True)
class Identity:
    """What the user store hands the issuer at login or registration."""

    id: int
    email: str
    role: str


@dataclass(frozen=True)
class Principal:
    """The trusted identity extracted from a verified token.

    Lives for one request. Use to_dict() for the wire form (subjectId).
    """

    subject_id: int
    email: str
    role: str

    def to_dict(self) -> dict[str, Any]:
        return {"subjectId": self.subject_id, "email": self.email, "role": self.role}


class TokenClaims(BaseModel):
    """The signed token payload.

    Extra keys are ignored on parse; the issuer never writes any.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    sub: int
    email: str
    role: str
    iat: Union[int, float]
    exp: Union[int, float]

    @field_validator("iat", "exp", mode="before")
    @classmethod
    def check_timestamp(cls, value: Any) -> Any:
        # bool is an int subclass and json.loads accepts NaN/Infinity.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("timestamp claims must be numbers")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("timestamp claims must be finite")
        return value

    def to_principal(self) -> Principal:
        return Principal(subject_id=self.sub, email=self.email, role=self.role)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str
    message: str
    request_id: str = Field(alias="requestId")
    timestamp: str


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    ok: bool = False
    error: ErrorDetail

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
