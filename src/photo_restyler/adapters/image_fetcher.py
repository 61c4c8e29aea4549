"""HTTP download client for source images."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class ImageFetcher(Protocol):
    """Interface for downloading an image by URL."""

    async def fetch(self, url: str) -> bytes:
        """Download an image and return its bytes."""


@dataclass
class HttpxImageFetcher(ImageFetcher):
    """Image fetcher using httpx."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 30.0

    @classmethod
    def create(cls, timeout_seconds: float = 30.0) -> "HttpxImageFetcher":
        """Create a fetcher with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(follow_redirects=True),
            timeout_seconds=timeout_seconds,
        )

    async def fetch(self, url: str) -> bytes:
        """Download image bytes, raising on HTTP errors or empty bodies."""
        response = await self.http_client.get(url, timeout=self.timeout_seconds)
        response.raise_for_status()
        if not response.content:
            raise RuntimeError(f"Empty image downloaded from {url}")
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
