"""Photo history and saved image endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from photo_restyler.api.auth import require_owner

if TYPE_CHECKING:
    from photo_restyler.containers import AppContainer

router = APIRouter(tags=["library"])


class SaveImageRequest(BaseModel):
    """Payload for bookmarking a variant."""

    url: str = Field(min_length=1)
    style: str = ""


@router.get("/photos")
async def list_photos(
    request: Request, owner_id: str = Depends(require_owner)
) -> dict[str, object]:
    """Return the caller's photos, newest first."""
    container: AppContainer = request.app.state.container
    records = container.photo_library.list_photos(owner_id)
    return {
        "photos": [
            {
                "id": record.id,
                "originalUrl": record.original_url,
                "generatedUrls": record.generated_urls,
                "createdAt": record.created_at.isoformat(),
            }
            for record in records
        ]
    }


@router.get("/saved")
async def list_saved(
    request: Request, owner_id: str = Depends(require_owner)
) -> dict[str, object]:
    """Return the caller's saved images, most recently saved first."""
    container: AppContainer = request.app.state.container
    entries = container.photo_library.list_saved(owner_id)
    return {
        "saved": [
            {
                "id": entry.id,
                "url": entry.url,
                "style": entry.style,
                "savedAt": entry.saved_at.isoformat(),
            }
            for entry in entries
        ]
    }


@router.put("/saved/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def save_image(
    entry_id: str,
    payload: SaveImageRequest,
    request: Request,
    owner_id: str = Depends(require_owner),
) -> None:
    """Bookmark a variant under its stable id."""
    container: AppContainer = request.app.state.container
    container.photo_library.save_image(owner_id, entry_id, payload.url, payload.style)


@router.delete("/saved/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unsave_image(
    entry_id: str, request: Request, owner_id: str = Depends(require_owner)
) -> None:
    """Remove a bookmark. Unknown ids are ignored."""
    container: AppContainer = request.app.state.container
    container.photo_library.unsave_image(owner_id, entry_id)
