"""Supabase Auth token verification."""

import logging
from dataclasses import dataclass

from supabase import Client

from photo_restyler.services.auth import TokenVerifier

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseTokenVerifier(TokenVerifier):
    """Verifies access tokens against Supabase Auth."""

    client: Client

    def verify(self, token: str) -> str | None:
        """Return the user id behind an access token."""
        try:
            response = self.client.auth.get_user(token)
        except Exception as exc:
            _logger.info("Rejected access token: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return str(response.user.id)
