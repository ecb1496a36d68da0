"""
auth/tokens.py -- Bearer token issuance and verification.

Wire format: a standard compact JWS, header.payload.signature, each segment
base64url encoded.
  header:    {"alg":"HS256","typ":"JWT"}
  payload:   exactly sub, email, role, iat, exp
  signature: HMAC-SHA256(key, header + "." + payload)

Security design decisions:
  python-jose does the encoding (jwt.encode) and supplies the HMAC key object
      (jwk.construct) whose verify() compares signatures in constant time.
      We do NOT use jwt.decode() for verification: it folds every failure into
      one JWTError, and callers here need to tell a forged token from an
      expired one from garbage. The checks run in a fixed order -- structure,
      signature, claim shape, expiry -- so nothing in an unsigned payload is
      trusted before the signature passes.

  Only HS256 is accepted. A header naming any other alg (including "none")
      is TokenMalformed.

  Claims are parsed into the strict TokenClaims model. Any missing field or
      wrong type is TokenMalformed; nothing is coerced.

  Expiry: verify_token() rejects once now >= exp (whole seconds).
      is_token_expired() reports True only once now > exp.

  decode_token() and is_token_expired() skip the signature check. They exist
      for inspection (CLI, debugging) and must never gate access.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import math
import time
from typing import Any, Optional, Union

from jose import jwk, jwt
from jose.constants import ALGORITHMS
from jose.exceptions import JWTError
from jose.utils import base64url_decode
from pydantic import ValidationError

from auth.errors import InvalidInput, TokenExpired, TokenMalformed, TokenSignatureInvalid
from auth.models import Identity, Principal, TokenClaims


DEFAULT_TTL_SECONDS = 86400
_ALGORITHM = ALGORITHMS.HS256

Key = Union[str, bytes]


def _now() -> int:
    return int(time.time())


def _signing_key(key: Key):
    if not isinstance(key, (str, bytes)) or not key:
        raise InvalidInput("Signing key must be a non-empty str or bytes")
    return jwk.construct(key, algorithm=_ALGORITHM)


# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------


def sign_token(identity: Identity, key: Key, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str:
    """Sign a token for identity, valid for ttl_seconds from now.

    A non-positive ttl yields a token that is already expired; tests rely on
    that to exercise the expiry path without sleeping.
    """
    if isinstance(identity.id, bool) or not isinstance(identity.id, int):
        raise InvalidInput("Identity id must be an integer")
    if not isinstance(identity.email, str) or not isinstance(identity.role, str):
        raise InvalidInput("Identity email and role must be strings")
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
        raise InvalidInput("ttl_seconds must be an integer")
    _signing_key(key)

    issued_at = _now()
    claims = {
        "sub": identity.id,
        "email": identity.email,
        "role": identity.role,
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    return jwt.encode(claims, key, algorithm=_ALGORITHM)


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


def _split(token: Any) -> tuple[dict[str, Any], bytes, bytes]:
    """Return (raw claims, signing input, signature) or raise TokenMalformed."""
    if not isinstance(token, str) or token.count(".") != 2:
        raise TokenMalformed("Token must have exactly three segments")
    try:
        header = jwt.get_unverified_header(token)
        claims = jwt.get_unverified_claims(token)
        signing_input, signature_segment = token.encode("ascii").rsplit(b".", 1)
        signature = base64url_decode(signature_segment)
    except (JWTError, ValueError) as exc:
        raise TokenMalformed("Token segments are not valid base64url JSON") from exc
    if header.get("alg") != _ALGORITHM:
        raise TokenMalformed("Unsupported token algorithm")
    return claims, signing_input, signature


def _parse_claims(claims: dict[str, Any]) -> TokenClaims:
    try:
        return TokenClaims.model_validate(claims)
    except ValidationError as exc:
        raise TokenMalformed("Token payload structure is invalid") from exc


def verify_token(token: str, key: Key) -> Principal:
    """Verify token against key and return the Principal it names.

    Raises:
        TokenMalformed:        structure, encoding, algorithm or claim shape.
        TokenSignatureInvalid: signature does not match key.
        TokenExpired:          exp is not in the future.
        InvalidInput:          key is empty or not str/bytes (caller bug).
    """
    verifier = _signing_key(key)
    raw_claims, signing_input, signature = _split(token)
    if not verifier.verify(signing_input, signature):
        raise TokenSignatureInvalid("Token signature does not match")
    claims = _parse_claims(raw_claims)
    if claims.exp <= _now():
        raise TokenExpired("Token has expired")
    return claims.to_principal()


def decode_token(token: str) -> Optional[Principal]:
    """Parse token WITHOUT checking signature or expiry. Never raises.

    Returns None for anything that does not parse into well-shaped claims.
    Inspection only -- never use the result for an access decision.
    """
    try:
        raw_claims, _, _ = _split(token)
        return _parse_claims(raw_claims).to_principal()
    except TokenMalformed:
        return None


def is_token_expired(token: str) -> Optional[bool]:
    """Return whether token's exp has passed, or None if that cannot be told.

    Does not check the signature. None covers undecodable tokens and tokens
    without a numeric exp claim. True only once exp is strictly in the past.
    """
    try:
        raw_claims, _, _ = _split(token)
    except TokenMalformed:
        return None
    exp = raw_claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    if isinstance(exp, float) and not math.isfinite(exp):
        return None
    # Strictly past: at exp == now verify_token already rejects, but this
    # still reports False.
    return exp < _now()


class TokenCodec:
    """Issuer + verifier bound to one signing key and default TTL.

    Built once at startup from the immutable auth config and injected into
    the gates, so no gate ever reads the key from global state.
    """

    def __init__(self, key: Key, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        _signing_key(key)
        self._key = key
        self._ttl_seconds = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def sign(self, identity: Identity, ttl_seconds: Optional[int] = None) -> str:
        ttl = self._ttl_seconds if ttl_seconds is None else ttl_seconds
        return sign_token(identity, self._key, ttl)

    def verify(self, token: str) -> Principal:
        return verify_token(token, self._key)

    def decode(self, token: str) -> Optional[Principal]:
        return decode_token(token)

    def is_expired(self, token: str) -> Optional[bool]:
        return is_token_expired(token)
