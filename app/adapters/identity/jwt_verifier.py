"""JWT connection token verifier backed by PyJWT."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Sequence

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from app.adapters.identity.base import AbstractTokenVerifier, VerifiedIdentity
from app.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def _token_fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:16]


class JwtTokenVerifier(AbstractTokenVerifier):
    """Verify signed JWTs and extract the user id claim.

    The user id is read from ``user_id_claim`` and falls back to the
    standard ``sub`` claim.
    """

    def __init__(
        self,
        *,
        key: str,
        algorithms: Sequence[str] = ("HS256",),
        audience: str | None = None,
        issuer: str | None = None,
        user_id_claim: str = "uid",
        leeway_seconds: int = 0,
    ) -> None:
        if not key:
            raise ValueError("key must be a non-empty string")
        if not algorithms:
            raise ValueError("at least one algorithm is required")

        self._key = key
        self._algorithms = list(algorithms)
        self._audience = audience
        self._issuer = issuer
        self._user_id_claim = user_id_claim
        self._leeway = leeway_seconds

    def _decode(self, token: str) -> dict[str, Any]:
        options: dict[str, Any] = {"verify_aud": self._audience is not None}
        return jwt.decode(
            token,
            self._key,
            algorithms=self._algorithms,
            audience=self._audience,
            issuer=self._issuer,
            leeway=self._leeway,
            options=options,
        )

    def verify(self, token: str) -> VerifiedIdentity:
        if not token:
            raise AuthenticationAppError(
                code="token_missing",
                message="Authentication token required",
            )

        try:
            claims = self._decode(token)
        except ExpiredSignatureError as exc:
            logger.info(
                "token.expired",
                extra={"token_hash": _token_fingerprint(token)},
            )
            raise AuthenticationAppError(
                code="token_expired",
                message="Authentication token has expired",
            ) from exc
        except InvalidTokenError as exc:
            logger.warning(
                "token.invalid",
                extra={
                    "token_hash": _token_fingerprint(token),
                    "error_type": type(exc).__name__,
                },
            )
            raise AuthenticationAppError(
                code="token_invalid",
                message="Authentication token is invalid",
            ) from exc

        user_id = claims.get(self._user_id_claim) or claims.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise AuthenticationAppError(
                code="token_missing_user",
                message="Authentication token does not identify a user",
                details={"hint": f"Expected a '{self._user_id_claim}' or 'sub' claim"},
            )

        return VerifiedIdentity(user_id=user_id, claims=claims)
