from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class VerifiedIdentity:
	"""Authenticated user behind a connection token."""

	user_id: str
	claims: dict[str, Any] = field(default_factory=dict)


class AbstractTokenVerifier(ABC):
	"""Interface for verifying connection tokens sent in the Socket.IO handshake."""

	@abstractmethod
	def verify(self, token: str) -> VerifiedIdentity:
		"""Verify ``token`` and return the identity it asserts.

		Args:
			token: Raw bearer token from ``auth.token``.

		Returns:
			VerifiedIdentity: The authenticated user.

		Raises:
			AuthenticationAppError: If the token is invalid, expired or carries no user id.
		"""
		...
