"""Gemini image generation client with streamed responses."""

import base64
from collections.abc import AsyncIterator
from dataclasses import dataclass

from google import genai
from google.genai import errors, types

from photo_restyler.domain.generation import ImageChunk
from photo_restyler.errors import BackendAuthError
from photo_restyler.services.generation import ImageStreamClient

_AUTH_ERROR_CODES = {401, 403}


@dataclass
class GeminiImageStreamClient(ImageStreamClient):
    """Streams generated images from a Gemini image model."""

    client: genai.Client
    model: str
    image_size: str | None = None

    @classmethod
    def create(
        cls, api_key: str, model: str, image_size: str | None = None
    ) -> "GeminiImageStreamClient":
        """Create a Gemini client for the given model."""
        return cls(
            client=genai.Client(api_key=api_key), model=model, image_size=image_size
        )

    async def stream_images(
        self, *, prompt: str, image_bytes: bytes, mime_type: str
    ) -> AsyncIterator[ImageChunk]:
        """Yield every inline image part from the response stream."""
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_text(text=prompt),
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                ],
            )
        ]
        config = types.GenerateContentConfig(
            response_modalities=["IMAGE", "TEXT"],
            image_config=(
                types.ImageConfig(image_size=self.image_size)
                if self.image_size
                else None
            ),
        )
        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self.model,
                contents=contents,
                config=config,
            )
            async for chunk in stream:
                for part in _parts(chunk):
                    inline = part.inline_data
                    if inline is None or not inline.data:
                        continue
                    data = inline.data
                    if isinstance(data, str):
                        data = base64.b64decode(data)
                    yield ImageChunk(
                        data=data, mime_type=inline.mime_type or "image/png"
                    )
        except errors.ClientError as exc:
            if exc.code in _AUTH_ERROR_CODES:
                raise BackendAuthError(f"Gemini rejected credentials: {exc}") from exc
            raise


def _parts(chunk: types.GenerateContentResponse) -> list[types.Part]:
    if not chunk.candidates:
        return []
    content = chunk.candidates[0].content
    if content is None or not content.parts:
        return []
    return list(content.parts)
