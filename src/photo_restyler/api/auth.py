"""Bearer token authentication for API routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Header, HTTPException, Request, status

if TYPE_CHECKING:
    from photo_restyler.containers import AppContainer


async def require_owner(
    request: Request, authorization: str | None = Header(default=None)
) -> str:
    """Resolve the bearer token to an owner id or reject the request."""
    container: AppContainer = request.app.state.container
    token = _bearer_token(authorization)
    owner_id = container.token_verifier.verify(token) if token else None
    if owner_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "status": "unauthenticated",
                "message": "User must be authenticated to generate images",
            },
        )
    return owner_id


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
