"""Supabase-backed saved image repository."""

from dataclasses import dataclass

from supabase import Client

from photo_restyler.adapters.supabase_photo_repository import parse_timestamp
from photo_restyler.domain.photos import SavedEntry
from photo_restyler.services.photos import SavedImageRepository


@dataclass
class SupabaseSavedImageRepository(SavedImageRepository):
    """Supabase implementation for saved images.

    ``saved_at`` defaults to ``now()`` in the table and is left out of the
    upsert payload, so re-saving keeps the original timestamp.
    """

    client: Client

    def save_image(self, owner_id: str, entry_id: str, url: str, style: str) -> None:
        """Upsert a saved image row."""
        self.client.table("saved_images").upsert(
            {"owner_id": owner_id, "id": entry_id, "url": url, "style": style},
            on_conflict="owner_id,id",
        ).execute()

    def delete_image(self, owner_id: str, entry_id: str) -> None:
        """Delete a saved image row."""
        self.client.table("saved_images").delete().eq("owner_id", owner_id).eq(
            "id", entry_id
        ).execute()

    def get_image(self, owner_id: str, entry_id: str) -> SavedEntry | None:
        """Return a saved image row, if present."""
        response = (
            self.client.table("saved_images")
            .select("id, url, style, saved_at")
            .eq("owner_id", owner_id)
            .eq("id", entry_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_images(self, owner_id: str) -> list[SavedEntry]:
        """Return saved images, most recently saved first."""
        response = (
            self.client.table("saved_images")
            .select("id, url, style, saved_at")
            .eq("owner_id", owner_id)
            .order("saved_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> SavedEntry:
    return SavedEntry(
        id=str(row["id"]),
        url=str(row.get("url", "")),
        style=str(row.get("style", "")),
        saved_at=parse_timestamp(row.get("saved_at")),
    )
