"""Generation pipeline state machine.

Drives one photo from upload to styled results::

    EMPTY -> UPLOADED -> GENERATING -> RESULTS | ERROR

``RESULTS`` and ``ERROR`` return to ``UPLOADED`` via ``clear_generated`` or to
``EMPTY`` via ``reset``. Collaborators read state through ``snapshot`` or a
``subscribe`` listener and never mutate it directly.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol
from uuid import uuid4

from photo_restyler.domain.generation import GenerationResult
from photo_restyler.domain.photos import GeneratedVariant, PhotoRecord, variant_id
from photo_restyler.domain.styles import StyleDescriptor
from photo_restyler.errors import (
    BackendFailure,
    InvalidStateError,
    PersistenceFailure,
    PipelineError,
    PreconditionFailure,
    UploadFailure,
)
from photo_restyler.services.auth import AuthProvider
from photo_restyler.services.images import detect_mime_type
from photo_restyler.services.photos import PhotoLibraryService
from photo_restyler.services.storage import BlobStorageService, original_path
from photo_restyler.services.styles import StylePlanner

_logger = logging.getLogger(__name__)

PLANNING_STARTED = 0.2
PLANNING_DONE = 0.4
BACKEND_STARTED = 0.5
BACKEND_DONE = 0.8
COMPLETE = 1.0


class PipelineState(StrEnum):
    """Lifecycle of the current photo."""

    EMPTY = "empty"
    UPLOADED = "uploaded"
    GENERATING = "generating"
    RESULTS = "results"
    ERROR = "error"


_GENERATABLE_STATES = {
    PipelineState.UPLOADED,
    PipelineState.RESULTS,
    PipelineState.ERROR,
}


class VariantGenerator(Protocol):
    """Produces uploaded variants for a style plan."""

    async def generate(
        self,
        owner_id: str,
        photo_id: str,
        image_bytes: bytes,
        styles: list[StyleDescriptor],
    ) -> GenerationResult:
        """Return the URLs and style labels that were produced."""


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only view of the pipeline published to collaborators."""

    state: PipelineState
    progress: float
    error_message: str
    failure: PipelineError | None
    variants: tuple[GeneratedVariant, ...]
    has_photo: bool


SnapshotListener = Callable[[PipelineSnapshot], None]


@dataclass
class GenerationPipeline:
    """Orchestrates upload, generation and persistence for one owner."""

    auth: AuthProvider
    storage: BlobStorageService
    library: PhotoLibraryService
    planner: StylePlanner
    generator: VariantGenerator
    upload_max_attempts: int = 3
    upload_initial_delay: float = 1.0
    upload_backoff_factor: float = 2.0
    state: PipelineState = field(default=PipelineState.EMPTY, init=False)
    progress: float = field(default=0.0, init=False)
    error_message: str = field(default="", init=False)
    failure: PipelineError | None = field(default=None, init=False)
    photo_bytes: bytes | None = field(default=None, init=False, repr=False)
    photo_id: str | None = field(default=None, init=False)
    original_url: str | None = field(default=None, init=False)
    _pending_upload: str | None = field(default=None, init=False, repr=False)
    _variants: list[GeneratedVariant] = field(default_factory=list, init=False)
    _saved: dict[str, GeneratedVariant] = field(default_factory=dict, init=False)
    _listeners: list[SnapshotListener] = field(default_factory=list, init=False)

    @property
    def variants(self) -> list[GeneratedVariant]:
        return list(self._variants)

    @property
    def saved_images(self) -> list[GeneratedVariant]:
        return list(self._saved.values())

    @property
    def has_photo(self) -> bool:
        return self.photo_bytes is not None

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            state=self.state,
            progress=self.progress,
            error_message=self.error_message,
            failure=self.failure,
            variants=tuple(self._variants),
            has_photo=self.has_photo,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def submit_photo(
        self, image_bytes: bytes | None = None
    ) -> PhotoRecord | None:
        """Upload a photo and register its record.

        Passing no bytes retries with the photo kept from the previous
        attempt. Upload and persistence failures end in ``ERROR`` with the
        photo still held in memory; ``None`` is returned in that case.
        """
        if self.state is PipelineState.GENERATING:
            raise PreconditionFailure("Generation in progress, wait for it to finish")
        data = image_bytes if image_bytes is not None else self.photo_bytes
        if not data:
            raise InvalidStateError("No photo to upload")
        owner_id = self._require_owner()

        photo_id = str(uuid4())
        self.photo_bytes = data
        self.photo_id = None
        self.original_url = None
        self._pending_upload = photo_id
        self._variants = []
        self._enter(PipelineState.UPLOADED)

        try:
            url = await self.storage.upload_with_retry(
                data,
                original_path(owner_id, photo_id),
                content_type=detect_mime_type(data),
                max_attempts=self.upload_max_attempts,
                initial_delay=self.upload_initial_delay,
                backoff_factor=self.upload_backoff_factor,
            )
        except Exception as exc:
            if self._pending_upload == photo_id:
                self._fail(UploadFailure(f"Failed to upload image: {exc}"))
            return None
        if self._pending_upload != photo_id:
            _logger.info("Discarding superseded upload: photo=%s", photo_id)
            return None

        try:
            record = self.library.create_photo(owner_id, photo_id, url)
        except Exception as exc:
            self._fail(PersistenceFailure(f"Failed to upload image: {exc}"))
            return None

        self._pending_upload = None
        self.photo_id = photo_id
        self.original_url = url
        _logger.info("Photo uploaded: owner=%s photo=%s", owner_id, photo_id)
        return record

    async def generate(self) -> list[GeneratedVariant]:
        """Run planning, generation and persistence for the current photo.

        Failures end in ``ERROR`` with progress reset and an empty list
        returned. Calls made in the wrong state raise before anything changes.
        """
        if self.state is PipelineState.GENERATING:
            raise PreconditionFailure("Generation already in progress")
        if (
            self.state not in _GENERATABLE_STATES
            or self.photo_bytes is None
            or self.photo_id is None
        ):
            raise InvalidStateError("Please upload an image first")
        owner_id = self._require_owner()
        photo_id = self.photo_id
        image_bytes = self.photo_bytes

        self._variants = []
        self.progress = 0.0
        self._enter(PipelineState.GENERATING)

        try:
            variants = await self._run_stages(owner_id, photo_id, image_bytes)
        except asyncio.CancelledError:
            self._fail(BackendFailure("Generation cancelled"))
            raise
        except PipelineError as exc:
            self._fail(exc, f"Failed to generate images: {exc}")
            return []
        except Exception as exc:
            self._fail(BackendFailure(str(exc)), f"Failed to generate images: {exc}")
            return []

        self._variants = variants
        self.state = PipelineState.RESULTS
        self._publish()
        _logger.info(
            "Generation finished: owner=%s photo=%s variants=%s",
            owner_id,
            photo_id,
            len(variants),
        )
        return list(variants)

    async def load_persisted(self) -> list[PhotoRecord]:
        """Restore previously generated images into the saved list.

        Best effort: failures are logged and an empty list is returned
        without touching the pipeline state.
        """
        owner_id = self.auth.current_user_id()
        if owner_id is None:
            _logger.info("Skipping restore: no signed-in owner")
            return []
        try:
            records = self.library.list_photos(owner_id)
        except Exception:
            _logger.exception("Failed to load persisted photos: owner=%s", owner_id)
            return []

        restored: dict[str, GeneratedVariant] = {}
        for record in records:
            for index, url in enumerate(record.generated_urls):
                variant = GeneratedVariant(
                    id=variant_id(record.id, index),
                    url=url,
                    style=f"Saved Image {index + 1}",
                    created_at=record.created_at,
                )
                restored[variant.id] = variant
        self._saved = restored
        self._publish()
        return records

    def save(self, variant: GeneratedVariant) -> None:
        """Bookmark a variant; saving an already saved id does nothing."""
        if variant.id in self._saved:
            return
        self._saved[variant.id] = variant
        self._publish()

    def unsave(self, entry_id: str) -> None:
        if self._saved.pop(entry_id, None) is not None:
            self._publish()

    def is_saved(self, entry_id: str) -> bool:
        return entry_id in self._saved

    def reset(self) -> None:
        """Forget the current photo and its results."""
        self._ensure_idle("reset")
        self.photo_bytes = None
        self.photo_id = None
        self.original_url = None
        self._pending_upload = None
        self._variants = []
        self.progress = 0.0
        self._enter(PipelineState.EMPTY)

    def clear_generated(self) -> None:
        """Drop generated variants but keep the uploaded photo."""
        self._ensure_idle("clear generated images")
        self._variants = []
        self.state = PipelineState.UPLOADED if self.has_photo else PipelineState.EMPTY
        self._publish()

    async def _run_stages(
        self, owner_id: str, photo_id: str, image_bytes: bytes
    ) -> list[GeneratedVariant]:
        self._advance(PLANNING_STARTED)
        styles = await self.planner.plan(image_bytes)
        self._advance(PLANNING_DONE)

        self._advance(BACKEND_STARTED)
        try:
            result = await self.generator.generate(
                owner_id, photo_id, image_bytes, styles
            )
        except PipelineError:
            raise
        except Exception as exc:
            raise BackendFailure(str(exc)) from exc
        if result.is_empty():
            raise BackendFailure("No images generated")
        self._advance(BACKEND_DONE)

        try:
            self.library.update_generated_urls(
                owner_id, photo_id, result.generated_urls
            )
        except Exception as exc:
            raise PersistenceFailure(
                f"Could not save generated images: {exc}"
            ) from exc
        variants = build_variants(result.generated_urls, result.styles)
        self._advance(COMPLETE)
        return variants

    def _require_owner(self) -> str:
        owner_id = self.auth.current_user_id()
        if owner_id is None:
            raise PreconditionFailure("User not authenticated")
        return owner_id

    def _ensure_idle(self, action: str) -> None:
        if self.state is PipelineState.GENERATING:
            raise PreconditionFailure(f"Cannot {action} while generating")

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self.error_message = ""
        self.failure = None
        self._publish()

    def _advance(self, progress: float) -> None:
        self.progress = max(self.progress, progress)
        self._publish()

    def _fail(self, failure: PipelineError, message: str | None = None) -> None:
        self._pending_upload = None
        self.state = PipelineState.ERROR
        self.failure = failure
        self.error_message = message or str(failure)
        self.progress = 0.0
        _logger.warning("Pipeline failed: %s", self.error_message)
        self._publish()

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.exception("Pipeline listener failed")


def build_variants(urls: list[str], labels: list[str]) -> list[GeneratedVariant]:
    """Pair URLs with labels by position, naming unlabelled ones generically.

    Each variant gets a fresh id, so bookmarks from an earlier run never
    match the results of a regeneration.
    """
    variants = []
    for index, url in enumerate(urls):
        style = labels[index] if index < len(labels) else ""
        variants.append(
            GeneratedVariant(
                id=str(uuid4()),
                url=url,
                style=style or f"Generated Style {index + 1}",
            )
        )
    return variants
