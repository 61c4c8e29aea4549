"""Blob storage for original photos and generated variants."""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)

ErrorListener = Callable[[str, str, Exception], None]

MAX_RECORDED_FAILURES = 100


class BlobStore(Protocol):
    """Interface for a binary object store."""

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` and return its public URL."""

    def download(self, path: str) -> bytes:
        """Return the bytes stored at ``path``."""

    def list_paths(self, prefix: str) -> list[str]:
        """Return the full paths of objects directly under ``prefix``."""

    def remove(self, paths: list[str]) -> None:
        """Delete the objects at ``paths``."""


def original_path(owner_id: str, photo_id: str) -> str:
    """Storage path of an uploaded source photo."""
    return f"owner/{owner_id}/original/{photo_id}"


def generated_prefix(owner_id: str, photo_id: str) -> str:
    """Storage folder holding every variant generated for a photo."""
    return f"owner/{owner_id}/generated/{photo_id}"


def generated_path(owner_id: str, photo_id: str, run_id: str, index: int) -> str:
    """Storage path of the variant at ``index`` of one generation run."""
    return f"{generated_prefix(owner_id, photo_id)}/{run_id}_{index}"


@dataclass(frozen=True)
class DeleteFailure:
    """A best-effort delete that did not succeed."""

    operation: str
    path: str
    error: Exception


@dataclass
class BlobStorageService:
    """Uploads with backoff and best-effort cleanup on top of a blob store.

    Failed deletes are kept in ``failures``, newest last, up to
    ``MAX_RECORDED_FAILURES``; older entries are discarded. Callers read them
    with ``drain_failures``.
    """

    store: BlobStore
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    on_error: ErrorListener | None = None
    failures: deque[DeleteFailure] = field(
        default_factory=lambda: deque(maxlen=MAX_RECORDED_FAILURES)
    )

    async def upload_with_retry(  # noqa: PLR0913
        self,
        data: bytes,
        path: str,
        content_type: str = "image/jpeg",
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        backoff_factor: float = 2.0,
    ) -> str:
        """Upload ``data`` to ``path``, retrying with exponential backoff.

        The delay before attempt ``n + 1`` is
        ``initial_delay * backoff_factor ** (n - 1)``. The error of the final
        attempt is re-raised once ``max_attempts`` is exhausted.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        attempt = 1
        while True:
            try:
                return self.store.upload(path, data, content_type)
            except Exception as exc:
                if attempt >= max_attempts:
                    _logger.error(
                        "Upload of %s failed after %s attempts: %s",
                        path,
                        attempt,
                        exc,
                    )
                    raise
                delay = initial_delay * backoff_factor ** (attempt - 1)
                _logger.warning(
                    "Upload of %s attempt %s failed: %s; retrying in %.1fs",
                    path,
                    attempt,
                    exc,
                    delay,
                )
                await self.sleep(delay)
                attempt += 1

    def download(self, path: str) -> bytes:
        """Return the bytes stored at ``path``."""
        return self.store.download(path)

    def delete_original(self, owner_id: str, photo_id: str) -> None:
        """Delete the source photo; the object may already be gone."""
        path = original_path(owner_id, photo_id)
        try:
            self.store.remove([path])
        except Exception as exc:
            self._report("delete_original", path, exc)

    def delete_all_generated(self, owner_id: str, photo_id: str) -> None:
        """Delete every generated variant of a photo."""
        prefix = generated_prefix(owner_id, photo_id)
        try:
            paths = self.store.list_paths(prefix)
            if paths:
                self.store.remove(paths)
        except Exception as exc:
            self._report("delete_all_generated", prefix, exc)

    def drain_failures(self) -> list[DeleteFailure]:
        """Return and forget the recorded delete failures."""
        drained = list(self.failures)
        self.failures.clear()
        return drained

    def delete_all(self, owner_id: str, photo_id: str) -> None:
        """Delete the original and the generated variants of a photo."""
        self.delete_original(owner_id, photo_id)
        self.delete_all_generated(owner_id, photo_id)

    def _report(self, operation: str, path: str, exc: Exception) -> None:
        _logger.warning("Best-effort %s failed for %s: %s", operation, path, exc)
        self.failures.append(DeleteFailure(operation=operation, path=path, error=exc))
        if self.on_error is not None:
            self.on_error(operation, path, exc)
