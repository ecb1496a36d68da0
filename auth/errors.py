"""
auth/errors.py -- Exception hierarchy for the auth core.

Two families, handled at different layers:

  Programmer errors (InvalidInput, InvalidConfig): a caller passed something
      the core cannot work with -- an empty secret, a work factor of 0, a role
      gate with no roles. Raised immediately and never caught by the gates.
      Both subclass ValueError so they read naturally at the call site.

  Operational errors (TokenError and subclasses): the expected outcome of
      untrusted input -- forged, expired or garbage tokens. Gates catch these
      and turn them into a Rejection; they must never crash the process.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthCoreError(Exception):
    """Base class for every error raised by the auth core."""


class InvalidInput(AuthCoreError, ValueError):
    """An argument has the wrong type or is empty."""


class InvalidConfig(AuthCoreError, ValueError):
    """A configuration value is outside its allowed range."""


class TokenError(AuthCoreError):
    """A bearer token failed verification."""


class TokenMalformed(TokenError):
    """Wrong segment count, bad encoding, or claims of the wrong shape."""


class TokenSignatureInvalid(TokenError):
    """The signature does not match the verification key."""


class TokenExpired(TokenError):
    """The exp claim is not in the future."""
