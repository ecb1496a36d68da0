"""
auth/hashing.py -- bcrypt hashing and verification of user secrets.

Security design decisions:
  bcrypt directly (no passlib wrapper). bcrypt embeds the salt and the cost
      factor in the hash string ($2b$12$...), so compare() works for hashes
      made at any work factor and needs no side-channel metadata.

  Work factor: configurable per CredentialHasher instance, integer in [1, 31].
      bcrypt itself refuses fewer than 4 rounds, so factors 1-3 are accepted
      for API compatibility and hashed at 4 rounds.

  Cost: every hash/compare call burns CPU proportional to 2**work_factor.
      Thread-per-request hosts may call hash()/compare() inline. Event-loop
      hosts must use hash_async()/compare_async(), which run the work on the
      loop's default executor so other requests keep flowing.

  Errors: an empty or non-string secret is a caller bug and raises
      InvalidInput. A stored hash that is not valid bcrypt compares False --
      it is data, not a programming error.

  Long secrets: bcrypt uses at most 72 bytes. Both hash() and compare() cut
      the encoded secret to that length, so hashes made by a truncating bcrypt
      elsewhere keep verifying.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import asyncio
import logging

import bcrypt

from auth.errors import InvalidConfig, InvalidInput

logger = logging.getLogger("learnlite.auth")

MIN_WORK_FACTOR = 1
MAX_WORK_FACTOR = 31
DEFAULT_WORK_FACTOR = 12

# bcrypt.gensalt() raises ValueError below this.
_BCRYPT_MIN_ROUNDS = 4

# bcrypt only reads the first 72 bytes of a secret. bcrypt>=5 raises instead
# of ignoring the rest, so secrets are cut here before they reach it.
_BCRYPT_MAX_SECRET_BYTES = 72


def _check_work_factor(work_factor: int) -> int:
    if isinstance(work_factor, bool) or not isinstance(work_factor, int):
        raise InvalidConfig("Work factor must be an integer between 1 and 31")
    if not MIN_WORK_FACTOR <= work_factor <= MAX_WORK_FACTOR:
        raise InvalidConfig("Work factor must be an integer between 1 and 31")
    return work_factor


def _require_text(value: object, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidInput(f"{what} must be a non-empty string")
    return value


def _secret_bytes(secret: str) -> bytes:
    return secret.encode("utf-8")[:_BCRYPT_MAX_SECRET_BYTES]


class CredentialHasher:
    """One-way hashing of secrets with a tunable bcrypt work factor."""

    def __init__(self, work_factor: int = DEFAULT_WORK_FACTOR) -> None:
        self._work_factor = _check_work_factor(work_factor)

    @property
    def work_factor(self) -> int:
        return self._work_factor

    def set_work_factor(self, work_factor: int) -> None:
        """Change the factor used for future hash() calls.

        Existing hashes keep verifying -- their factor is embedded in them.
        """
        self._work_factor = _check_work_factor(work_factor)

    def hash(self, secret: str) -> str:
        """Return a salted bcrypt hash of secret.

        Two calls with the same secret return different strings (fresh salt
        each time); both verify with compare().

        Only the first 72 bytes of the UTF-8 encoded secret are hashed, so
        longer secrets that share that prefix compare equal. Callers should
        cap secret length at the input-validation layer.
        """
        _require_text(secret, "Password")
        rounds = max(self._work_factor, _BCRYPT_MIN_ROUNDS)
        hashed = bcrypt.hashpw(_secret_bytes(secret), bcrypt.gensalt(rounds=rounds))
        return hashed.decode("utf-8")

    def compare(self, secret: str, hashed_secret: str) -> bool:
        """Return True iff secret produced hashed_secret.

        bcrypt.checkpw compares in constant time.
        """
        _require_text(secret, "Password")
        _require_text(hashed_secret, "Hashed password")
        candidate = _secret_bytes(secret)
        try:
            return bcrypt.checkpw(candidate, hashed_secret.encode("utf-8"))
        except ValueError:
            # Not a bcrypt hash (bad salt / encoding).
            logger.warning("Stored credential is not a valid bcrypt hash")
            return False

    def needs_rehash(self, hashed_secret: str) -> bool:
        """Return True if hashed_secret was made with fewer rounds than we use now.

        Login flows call this after a successful compare() and, if True,
        replace the stored hash so work factor increases roll out gradually.
        Anything that is not a bcrypt hash needs a rehash.
        """
        try:
            # bcrypt hash format: $2b$XX$<53 chars of salt+digest>
            _, _, rounds_str, _ = hashed_secret.split("$", 3)
            rounds = int(rounds_str)
        except (AttributeError, ValueError):
            return True
        return rounds < max(self._work_factor, _BCRYPT_MIN_ROUNDS)

    async def hash_async(self, secret: str) -> str:
        """hash() run on the event loop's default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.hash, secret)

    async def compare_async(self, secret: str, hashed_secret: str) -> bool:
        """compare() run on the event loop's default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.compare, secret, hashed_secret)


def create_hasher(work_factor: int = DEFAULT_WORK_FACTOR) -> CredentialHasher:
    """Build a hasher with its own work factor (tests use a low one)."""
    return CredentialHasher(work_factor)


# Process-wide default used by the convenience functions below. Hosts that
# load a configured work factor build their own via create_hasher().
default_hasher = CredentialHasher()


def hash_secret(secret: str) -> str:
    return default_hasher.hash(secret)


def compare_secret(secret: str, hashed_secret: str) -> bool:
    return default_hasher.compare(secret, hashed_secret)
