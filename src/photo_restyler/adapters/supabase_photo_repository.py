"""Supabase-backed photo record repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from photo_restyler.domain.photos import PhotoRecord
from photo_restyler.services.photos import PhotoRepository

_COLUMNS = "id, owner_id, original_url, generated_urls, created_at"


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo records."""

    client: Client

    def create_photo(self, record: PhotoRecord) -> None:
        """Insert a photo row."""
        response = (
            self.client.table("photos")
            .insert(
                {
                    "id": record.id,
                    "owner_id": record.owner_id,
                    "original_url": record.original_url,
                    "generated_urls": list(record.generated_urls),
                    "created_at": record.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create photo record")

    def get_photo(self, owner_id: str, photo_id: str) -> PhotoRecord | None:
        """Return a photo row by owner and id."""
        response = (
            self.client.table("photos")
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .eq("id", photo_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def update_generated_urls(
        self, owner_id: str, photo_id: str, generated_urls: list[str]
    ) -> None:
        """Overwrite the generated URLs column."""
        response = (
            self.client.table("photos")
            .update({"generated_urls": generated_urls})
            .eq("owner_id", owner_id)
            .eq("id", photo_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Photo {photo_id} not found")

    def list_photos(self, owner_id: str) -> list[PhotoRecord]:
        """Return an owner's photos, newest first."""
        response = (
            self.client.table("photos")
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def delete_photo(self, owner_id: str, photo_id: str) -> None:
        """Delete a photo row."""
        self.client.table("photos").delete().eq("owner_id", owner_id).eq(
            "id", photo_id
        ).execute()


def _parse_row(row: dict[str, object]) -> PhotoRecord:
    urls = row.get("generated_urls") or []
    return PhotoRecord(
        id=str(row["id"]),
        owner_id=str(row["owner_id"]),
        original_url=str(row.get("original_url", "")),
        generated_urls=[str(url) for url in urls] if isinstance(urls, list) else [],
        created_at=parse_timestamp(row.get("created_at")),
    )


def parse_timestamp(raw: object) -> datetime:
    """Parse a Postgres timestamp, defaulting to the epoch floor."""
    if isinstance(raw, str) and raw:
        parsed = datetime.fromisoformat(raw)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.min.replace(tzinfo=UTC)
