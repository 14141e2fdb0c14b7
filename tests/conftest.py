"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
below is in place before ``app.core.config`` builds the global settings.
"""

import os
import time

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_JWT_KEY", "test-signing-key-0123456789abcdef0123456789")
os.environ.setdefault("AUTH_JWT_ALGORITHMS", "HS256")
os.environ.setdefault("APP_API_KEY_REQUIRED", "false")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")

import jwt
import pytest


@pytest.fixture
def jwt_key() -> str:
    return os.environ["AUTH_JWT_KEY"]


@pytest.fixture
def make_token(jwt_key):
    """Build signed connection tokens for a user id."""

    def _make(user_id: str = "user-1", *, expires_in: int = 3600, **claims) -> str:
        payload = {"uid": user_id, "exp": int(time.time()) + expires_in, **claims}
        return jwt.encode(payload, jwt_key, algorithm="HS256")

    return _make
