"""Multi-image generation with per-chunk uploads."""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from photo_restyler.domain.generation import (
    GeneratedImage,
    GenerationResult,
    ImageChunk,
)
from photo_restyler.domain.styles import StyleDescriptor
from photo_restyler.errors import (
    BackendFailure,
    GenerationTimeout,
    PartialVariantFailure,
)
from photo_restyler.services.images import detect_mime_type
from photo_restyler.services.storage import BlobStorageService, generated_path

_logger = logging.getLogger(__name__)

_PRESERVATION_RULES = """CRITICAL RULES - FOLLOW EXACTLY:
- DO NOT change the background, location, or scene
- DO NOT add new objects or remove existing elements
- DO NOT change the person's pose, position, or appearance
- ONLY change: lighting, color grading, mood, atmosphere, and photo filter
- Keep the EXACT same composition and setting as the original
- The result should look like the same photo taken at different times of day \
or with different camera settings
- Make it look natural and realistic"""


class ImageStreamClient(Protocol):
    """Interface for a backend that streams generated images."""

    def stream_images(
        self, *, prompt: str, image_bytes: bytes, mime_type: str
    ) -> AsyncIterator[ImageChunk]:
        """Yield generated images as they arrive."""


def build_prompt(styles: list[StyleDescriptor]) -> str:
    """Build the single request prompt covering every style in the plan."""
    numbered = "\n".join(
        f"{index}. {style.label}" for index, style in enumerate(styles, start=1)
    )
    return (
        f"Generate {len(styles)} different style variations of this photo:\n\n"
        f"{numbered}\n\n"
        f"{_PRESERVATION_RULES}\n"
        f"- Generate exactly {len(styles)} images, one for each style above"
    )


@dataclass
class GenerationService:
    """Streams variants from the backend and uploads each as it arrives.

    Chunk ``n`` is labelled with style ``n`` of the plan. Chunks past the end
    of the plan are dropped. Every run uploads under its own ``run_id`` so a
    regeneration never overwrites earlier variants.
    """

    client: ImageStreamClient
    storage: BlobStorageService
    timeout_seconds: float = 540.0
    upload_attempts: int = 1

    async def generate(
        self,
        owner_id: str,
        photo_id: str,
        image_bytes: bytes,
        styles: list[StyleDescriptor],
        run_id: str | None = None,
    ) -> GenerationResult:
        """Produce variants of ``image_bytes`` for each style in ``styles``."""
        if not styles:
            raise ValueError("At least one style is required")
        run_id = run_id or uuid4().hex
        prompt = build_prompt(styles)
        images: list[GeneratedImage] = []
        _logger.info(
            "Generating %s variants: owner=%s photo=%s run=%s",
            len(styles),
            owner_id,
            photo_id,
            run_id,
        )
        try:
            async with asyncio.timeout(self.timeout_seconds):
                await self._consume(
                    owner_id,
                    photo_id,
                    run_id,
                    image_bytes,
                    prompt,
                    styles,
                    images,
                )
        except TimeoutError as exc:
            raise GenerationTimeout(
                f"Generation did not finish within {self.timeout_seconds:.0f}s"
            ) from exc

        if not images:
            raise BackendFailure("Failed to generate any images")
        _logger.info(
            "Generated %s of %s variants: photo=%s",
            len(images),
            len(styles),
            photo_id,
        )
        return GenerationResult.from_images(images)

    async def _consume(  # noqa: PLR0913
        self,
        owner_id: str,
        photo_id: str,
        run_id: str,
        image_bytes: bytes,
        prompt: str,
        styles: list[StyleDescriptor],
        images: list[GeneratedImage],
    ) -> None:
        index = 0
        stream = self.client.stream_images(
            prompt=prompt,
            image_bytes=image_bytes,
            mime_type=detect_mime_type(image_bytes),
        )
        async for chunk in stream:
            if not chunk.data:
                continue
            if index >= len(styles):
                _logger.warning(
                    "Dropping extra generated image %s: plan has %s styles",
                    index,
                    len(styles),
                )
                index += 1
                continue
            style = styles[index].name
            path = generated_path(owner_id, photo_id, run_id, index)
            try:
                url = await self.storage.upload_with_retry(
                    chunk.data,
                    path,
                    content_type=chunk.mime_type,
                    max_attempts=self.upload_attempts,
                )
            except Exception as exc:
                failure = PartialVariantFailure(index, exc)
                _logger.warning("Skipping variant: %s", failure)
            else:
                images.append(GeneratedImage(url=url, style=style))
                _logger.info("Uploaded variant %s: %s", index + 1, style)
            index += 1
