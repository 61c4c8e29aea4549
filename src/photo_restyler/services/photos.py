"""Per-owner photo records and saved images."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from photo_restyler.domain.photos import PhotoRecord, SavedEntry
from photo_restyler.errors import DuplicatePhotoError

_logger = logging.getLogger(__name__)

PhotoListener = Callable[[list[PhotoRecord]], None]


class PhotoRepository(Protocol):
    """Persistence interface for photo records."""

    def create_photo(self, record: PhotoRecord) -> None:
        """Insert a new photo record."""

    def get_photo(self, owner_id: str, photo_id: str) -> PhotoRecord | None:
        """Return a photo record, if present."""

    def update_generated_urls(
        self, owner_id: str, photo_id: str, generated_urls: list[str]
    ) -> None:
        """Replace the generated URLs of a photo record."""

    def list_photos(self, owner_id: str) -> list[PhotoRecord]:
        """Return all photo records of an owner, newest first."""

    def delete_photo(self, owner_id: str, photo_id: str) -> None:
        """Delete a photo record."""


class SavedImageRepository(Protocol):
    """Persistence interface for saved images."""

    def save_image(self, owner_id: str, entry_id: str, url: str, style: str) -> None:
        """Create or overwrite a saved entry."""

    def delete_image(self, owner_id: str, entry_id: str) -> None:
        """Delete a saved entry if it exists."""

    def get_image(self, owner_id: str, entry_id: str) -> SavedEntry | None:
        """Return a saved entry, if present."""

    def list_images(self, owner_id: str) -> list[SavedEntry]:
        """Return saved entries of an owner, most recently saved first."""


@dataclass
class _Subscription:
    owner_id: str
    listener: PhotoListener


@dataclass
class PhotoLibraryService:
    """Owner-scoped access to photo records and saved images."""

    photo_repository: PhotoRepository
    saved_repository: SavedImageRepository
    _subscriptions: list[_Subscription] = field(default_factory=list)

    def create_photo(
        self, owner_id: str, photo_id: str, original_url: str
    ) -> PhotoRecord:
        """Register a freshly uploaded photo with no generated URLs."""
        if self.photo_repository.get_photo(owner_id, photo_id) is not None:
            raise DuplicatePhotoError(f"Photo {photo_id} already exists")
        record = PhotoRecord(
            id=photo_id,
            owner_id=owner_id,
            original_url=original_url,
            generated_urls=[],
            created_at=datetime.now(tz=UTC),
        )
        self.photo_repository.create_photo(record)
        _logger.info("Photo created: owner=%s photo=%s", owner_id, photo_id)
        self._notify(owner_id)
        return record

    def update_generated_urls(
        self, owner_id: str, photo_id: str, generated_urls: list[str]
    ) -> None:
        """Replace the generated URLs of a photo wholesale."""
        self.photo_repository.update_generated_urls(
            owner_id, photo_id, list(generated_urls)
        )
        _logger.info(
            "Photo updated: owner=%s photo=%s generated=%s",
            owner_id,
            photo_id,
            len(generated_urls),
        )
        self._notify(owner_id)

    def get_photo(self, owner_id: str, photo_id: str) -> PhotoRecord | None:
        return self.photo_repository.get_photo(owner_id, photo_id)

    def list_photos(self, owner_id: str) -> list[PhotoRecord]:
        """Return an owner's photos ordered by creation time, newest first."""
        records = self.photo_repository.list_photos(owner_id)
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    def delete_photo(self, owner_id: str, photo_id: str) -> None:
        self.photo_repository.delete_photo(owner_id, photo_id)
        self._notify(owner_id)

    def subscribe_photos(
        self, owner_id: str, listener: PhotoListener
    ) -> Callable[[], None]:
        """Push the full ordered photo list now and after every change.

        Returns a callable that cancels the subscription.
        """
        subscription = _Subscription(owner_id=owner_id, listener=listener)
        self._subscriptions.append(subscription)
        listener(self.list_photos(owner_id))

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def save_image(self, owner_id: str, entry_id: str, url: str, style: str) -> None:
        """Bookmark a variant.

        Saving the same id again overwrites its URL and style but keeps the
        original save time.
        """
        self.saved_repository.save_image(owner_id, entry_id, url, style)

    def unsave_image(self, owner_id: str, entry_id: str) -> None:
        self.saved_repository.delete_image(owner_id, entry_id)

    def is_saved(self, owner_id: str, entry_id: str) -> bool:
        return self.saved_repository.get_image(owner_id, entry_id) is not None

    def list_saved(self, owner_id: str) -> list[SavedEntry]:
        """Return saved images ordered by save time, newest first."""
        entries = self.saved_repository.list_images(owner_id)
        return sorted(entries, key=lambda entry: entry.saved_at, reverse=True)

    def _notify(self, owner_id: str) -> None:
        listeners = [
            subscription.listener
            for subscription in self._subscriptions
            if subscription.owner_id == owner_id
        ]
        if not listeners:
            return
        records = self.list_photos(owner_id)
        for listener in listeners:
            try:
                listener(list(records))
            except Exception:
                _logger.exception("Photo listener failed: owner=%s", owner_id)
