"""API key authentication for the collaborator HTTP endpoints.

``/emit`` and ``/check-room-members`` are called by the backend API, not by
browsers. When ``APP_API_KEY_REQUIRED`` is on, callers must send one of the
keys in ``APP_API_KEYS`` as ``X-API-Key``. Socket connections authenticate
separately with a bearer token (see ``app.adapters.identity``).
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import Header

from app.core.config import parse_csv, settings
from app.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 , key1"))
        ['key1', 'key2']
        >>> parse_api_keys(None)
        set()
    """
    return set(parse_csv(keys_string))


def _key_hash(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def validate_api_key(provided_key: str | None) -> None:
    """Validate that provided API key matches configured keys.

    Pure validation logic without FastAPI dependencies for easy testing.

    Raises:
        AuthenticationAppError: If the key is missing or invalid, or if
            authentication is required but no keys are configured.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)

    if not valid_keys:
        logger.error(
            "api_key_validation_failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning(
            "api_key_validation_failed",
            extra={"reason": "missing_api_key"},
        )
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    if not any(hmac.compare_digest(provided_key, key) for key in valid_keys):
        logger.warning(
            "api_key_validation_failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": _key_hash(provided_key),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding the collaborator endpoints.

    Usage:
        @router.post("/emit", dependencies=[Depends(verify_api_key)])

    Raises:
        AuthenticationAppError: Rendered as 403 by the exception handlers.
    """
    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    validate_api_key(x_api_key)
    logger.debug("auth.success", extra={"api_key_hash": _key_hash(x_api_key or "")})
