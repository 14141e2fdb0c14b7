from app.adapters.identity.base import AbstractTokenVerifier, VerifiedIdentity
from app.adapters.identity.factory import create_token_verifier
from app.adapters.identity.jwt_verifier import JwtTokenVerifier

__all__ = [
    "AbstractTokenVerifier",
    "JwtTokenVerifier",
    "VerifiedIdentity",
    "create_token_verifier",
]
