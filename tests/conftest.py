"""
tests/conftest.py -- Shared fixtures for the LearnLite auth test suite.

This module provides:
  - settings: a Settings instance with a fixed 32+ char key and a low bcrypt
    work factor, built from init kwargs so the developer's .env never leaks in
  - codec / hasher: the core objects built from that config
  - api_client: TestClient over create_app(settings)
  - bearer(): helper that turns a token into request headers

The DEBUG env var must be set before any core import so get_settings() can
auto-generate SECRET_KEY if a module under test calls it.
"""

from __future__ import annotations

import os
from collections.abc import Generator

# Set DEBUG before any core import so get_settings() never raises on a
# missing SECRET_KEY during collection.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from auth.hashing import CredentialHasher
from auth.models import Identity
from auth.tokens import TokenCodec
from core.config import Settings

TEST_KEY = "test-signing-key-0123456789abcdef0123456789"

STUDENT = Identity(id=1, email="a@b.com", role="student")
INSTRUCTOR = Identity(id=2, email="instructor@example.com", role="instructor")
ADMIN = Identity(id=3, email="admin@example.com", role="admin")


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a bearer token."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings() -> Settings:
    return Settings(secret_key=TEST_KEY, bcrypt_work_factor=4, debug=False, _env_file=None)


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    config = settings.auth_config()
    return TokenCodec(config.secret_key, config.token_ttl_seconds)


@pytest.fixture
def hasher() -> CredentialHasher:
    # 4 is bcrypt's floor -- keeps the suite fast.
    return CredentialHasher(work_factor=4)


@pytest.fixture
def api_client(settings: Settings) -> Generator[TestClient, None, None]:
    """TestClient over a fresh app built from the test settings."""
    with TestClient(create_app(settings)) as client:
        yield client
