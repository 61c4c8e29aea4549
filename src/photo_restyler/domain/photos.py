"""Domain models for photos and their generated variants."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class PhotoRecord:
    """One user-submitted photo and the URLs generated from it."""

    id: str
    owner_id: str
    original_url: str
    generated_urls: list[str]
    created_at: datetime


@dataclass(frozen=True)
class GeneratedVariant:
    """A styled output shown to the user."""

    id: str
    url: str
    style: str
    created_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class SavedEntry:
    """A bookmarked variant."""

    id: str
    url: str
    style: str
    saved_at: datetime


def variant_id(photo_id: str, index: int) -> str:
    """Return the stable id of a variant restored from a photo record."""
    return f"{photo_id}_{index}"
