"""
tests/test_hashing.py -- Unit tests for auth/hashing.py.

Coverage:
  - bcrypt output shape and salting (two hashes differ, both verify)
  - wrong secret / foreign hash compare False
  - empty and non-string arguments raise InvalidInput
  - work factor bounds [1, 31] and the bcrypt 4-round floor
  - compare() works across work factors (factor embedded in the hash)
  - needs_rehash() and the executor-backed async variants

All hashing runs at work factor 4 to keep the suite fast.
"""

from __future__ import annotations

import asyncio

import bcrypt
import pytest

from auth.errors import InvalidConfig, InvalidInput
from auth.hashing import CredentialHasher, compare_secret, create_hasher, default_hasher, hash_secret


class TestHash:
    def test_produces_bcrypt_hash(self, hasher: CredentialHasher) -> None:
        hashed = hasher.hash("SecurePassword123")
        assert hashed.startswith("$2b$04$")
        assert len(hashed) == 60

    def test_same_secret_hashes_differently_but_both_verify(self, hasher: CredentialHasher) -> None:
        """Fresh salt per call: h1 != h2, yet compare() accepts both."""
        h1 = hasher.hash("pw")
        h2 = hasher.hash("pw")
        assert h1 != h2
        assert hasher.compare("pw", h1) is True
        assert hasher.compare("pw", h2) is True

    @pytest.mark.parametrize("bad", ["", None, 123, b"bytes"])
    def test_rejects_empty_or_non_string(self, hasher: CredentialHasher, bad) -> None:
        with pytest.raises(InvalidInput):
            hasher.hash(bad)

    def test_invalid_input_is_a_value_error(self, hasher: CredentialHasher) -> None:
        """Programmer errors fail loudly as ValueError."""
        with pytest.raises(ValueError):
            hasher.hash("")


class TestCompare:
    def test_wrong_secret_is_false(self, hasher: CredentialHasher) -> None:
        hashed = hasher.hash("SecurePassword123")
        assert hasher.compare("WrongPassword", hashed) is False

    def test_case_matters(self, hasher: CredentialHasher) -> None:
        hashed = hasher.hash("Secret")
        assert hasher.compare("secret", hashed) is False

    @pytest.mark.parametrize("secret,hashed", [("", "$2b$04$x"), ("pw", ""), (None, "$2b$04$x"), ("pw", None)])
    def test_rejects_empty_or_non_string_arguments(self, hasher: CredentialHasher, secret, hashed) -> None:
        with pytest.raises(InvalidInput):
            hasher.compare(secret, hashed)

    def test_non_bcrypt_hash_is_false(self, hasher: CredentialHasher) -> None:
        assert hasher.compare("pw", "not-a-bcrypt-hash") is False

    def test_verifies_hash_from_other_work_factor(self, hasher: CredentialHasher) -> None:
        """The factor lives in the hash, so changing ours does not break old hashes."""
        old = bcrypt.hashpw(b"pw", bcrypt.gensalt(rounds=5)).decode()
        assert hasher.work_factor == 4
        assert hasher.compare("pw", old) is True

    def test_long_secret_round_trip(self, hasher: CredentialHasher) -> None:
        hashed = hasher.hash("a" * 100)
        assert hasher.compare("a" * 100, hashed) is True
        assert hasher.compare("b" * 100, hashed) is False

    def test_long_secret_matches_hash_of_first_72_bytes(self, hasher: CredentialHasher, caplog) -> None:
        """Hashes from a bcrypt that silently truncates still verify."""
        truncated = bcrypt.hashpw(b"a" * 72, bcrypt.gensalt(rounds=4)).decode()
        with caplog.at_level("WARNING", logger="learnlite.auth"):
            assert hasher.compare("a" * 100, truncated) is True
        assert "not a valid bcrypt hash" not in caplog.text

    def test_multibyte_secret_over_72_bytes(self, hasher: CredentialHasher) -> None:
        secret = "\u00e9" * 50
        assert hasher.compare(secret, hasher.hash(secret)) is True


class TestWorkFactor:
    @pytest.mark.parametrize("factor", [0, 32, -1])
    def test_out_of_range_rejected(self, hasher: CredentialHasher, factor: int) -> None:
        with pytest.raises(InvalidConfig, match="between 1 and 31"):
            hasher.set_work_factor(factor)

    @pytest.mark.parametrize("factor", [1, 31])
    def test_bounds_accepted(self, hasher: CredentialHasher, factor: int) -> None:
        hasher.set_work_factor(factor)
        assert hasher.work_factor == factor

    @pytest.mark.parametrize("factor", [True, 4.0, "12"])
    def test_non_integer_rejected(self, factor) -> None:
        with pytest.raises(InvalidConfig):
            CredentialHasher(factor)

    def test_failed_update_keeps_previous_factor(self, hasher: CredentialHasher) -> None:
        with pytest.raises(InvalidConfig):
            hasher.set_work_factor(99)
        assert hasher.work_factor == 4

    def test_factor_below_bcrypt_floor_hashes_at_four_rounds(self) -> None:
        low = create_hasher(1)
        hashed = low.hash("pw")
        assert hashed.startswith("$2b$04$")
        assert low.compare("pw", hashed) is True

    def test_constructor_bounds(self) -> None:
        with pytest.raises(InvalidConfig):
            CredentialHasher(0)
        with pytest.raises(InvalidConfig):
            CredentialHasher(32)


class TestNeedsRehash:
    def test_lower_factor_needs_rehash(self) -> None:
        old = bcrypt.hashpw(b"pw", bcrypt.gensalt(rounds=4)).decode()
        assert create_hasher(5).needs_rehash(old) is True

    def test_current_factor_does_not(self, hasher: CredentialHasher) -> None:
        assert hasher.needs_rehash(hasher.hash("pw")) is False

    def test_garbage_needs_rehash(self, hasher: CredentialHasher) -> None:
        assert hasher.needs_rehash("plaintext") is True


class TestAsync:
    def test_hash_and_compare_async(self, hasher: CredentialHasher) -> None:
        async def roundtrip() -> tuple[bool, bool]:
            hashed = await hasher.hash_async("pw")
            return await hasher.compare_async("pw", hashed), await hasher.compare_async("nope", hashed)

        assert asyncio.run(roundtrip()) == (True, False)

    def test_async_propagates_invalid_input(self, hasher: CredentialHasher) -> None:
        with pytest.raises(InvalidInput):
            asyncio.run(hasher.hash_async(""))


class TestModuleDefaults:
    def test_default_hasher_uses_default_factor(self) -> None:
        assert default_hasher.work_factor == 12

    def test_hash_secret_round_trip(self, monkeypatch) -> None:
        monkeypatch.setattr("auth.hashing.default_hasher", CredentialHasher(4))
        hashed = hash_secret("S3cret!")
        assert hashed.startswith("$2b$04$")
        assert compare_secret("S3cret!", hashed) is True
        assert compare_secret("wrong", hashed) is False

    def test_compare_secret_validates_input(self) -> None:
        with pytest.raises(InvalidInput):
            compare_secret("", "$2b$04$x")
