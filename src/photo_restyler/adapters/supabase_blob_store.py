"""Supabase Storage-backed blob store."""

from dataclasses import dataclass
from typing import Any, Protocol

from supabase import Client

from photo_restyler.services.storage import BlobStore


class StorageBucket(Protocol):
    """Subset of the Supabase Storage bucket API used here."""

    def upload(
        self, path: str, file: bytes, file_options: dict[str, str]
    ) -> Any: ...

    def get_public_url(self, path: str) -> str: ...

    def download(self, path: str) -> bytes: ...

    def remove(self, paths: list[str]) -> Any: ...

    def list(self, path: str) -> list[dict[str, Any]]: ...


@dataclass
class SupabaseBlobStore(BlobStore):
    """Stores objects in a single Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes, overwriting any existing object, and return its URL."""
        self._bucket().upload(
            path=path,
            file=data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
        return self._bucket().get_public_url(path)

    def download(self, path: str) -> bytes:
        """Download an object's bytes."""
        return self._bucket().download(path)

    def list_paths(self, prefix: str) -> list[str]:
        """List objects under a folder."""
        entries = self._bucket().list(prefix)
        return [f"{prefix}/{entry['name']}" for entry in entries if entry.get("name")]

    def remove(self, paths: list[str]) -> None:
        """Delete objects by path."""
        self._bucket().remove(paths)

    def _bucket(self) -> StorageBucket:
        return self.client.storage.from_(self.bucket)
