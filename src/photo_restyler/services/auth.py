"""Identity collaborators."""

from dataclasses import dataclass
from typing import Protocol


class AuthProvider(Protocol):
    """Supplies the stable identifier of the signed-in owner."""

    def current_user_id(self) -> str | None:
        """Return the owner id, or None when nobody is signed in."""


class TokenVerifier(Protocol):
    """Resolves a bearer token to an owner id."""

    def verify(self, token: str) -> str | None:
        """Return the owner id for a valid token, otherwise None."""


@dataclass
class StaticAuthProvider(AuthProvider):
    """Auth provider for a caller whose identity is already known."""

    user_id: str | None

    def current_user_id(self) -> str | None:
        return self.user_id
