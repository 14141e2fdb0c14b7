"""Factory for the connection token verifier."""

from app.adapters.identity.base import AbstractTokenVerifier
from app.adapters.identity.jwt_verifier import JwtTokenVerifier
from app.core.config import AuthSettings, parse_csv, settings
from app.core.errors import ValidationAppError


def create_token_verifier(auth_settings: AuthSettings | None = None) -> AbstractTokenVerifier:
    """Build the token verifier from configuration.

    Args:
        auth_settings: Optional override; defaults to ``settings.auth``.

    Returns:
        AbstractTokenVerifier: Configured verifier instance.

    Raises:
        ValidationAppError: If no verification key or algorithm is configured.
    """
    cfg = auth_settings or settings.auth

    if not cfg.jwt_key:
        raise ValidationAppError(
            code="auth_missing_key",
            message="Connection token verification requires AUTH_JWT_KEY",
        )

    algorithms = parse_csv(cfg.jwt_algorithms)
    if not algorithms:
        raise ValidationAppError(
            code="auth_missing_algorithms",
            message="AUTH_JWT_ALGORITHMS must list at least one algorithm",
        )

    return JwtTokenVerifier(
        key=cfg.jwt_key,
        algorithms=algorithms,
        audience=cfg.audience,
        issuer=cfg.issuer,
        user_id_claim=cfg.user_id_claim,
        leeway_seconds=cfg.leeway_seconds,
    )
