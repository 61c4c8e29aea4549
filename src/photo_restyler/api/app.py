"""FastAPI application factory."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request, status

from photo_restyler.api.auth import require_owner
from photo_restyler.api.library import router as library_router
from photo_restyler.app_logging import configure_logging
from photo_restyler.containers import AppContainer

VERSION = "1.0.0"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(library_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Deployment health check."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "version": VERSION,
        }

    @app.post("/generate-images")
    async def generate_images(
        request: Request, owner_id: str = Depends(require_owner)
    ) -> dict[str, object]:
        """Generate styled variants of an uploaded image."""
        state_container: AppContainer = request.app.state.container
        image_url = _image_url(await _read_json(request))
        logger.info("Generating images for owner %s from %s", owner_id, image_url)

        try:
            image_bytes = await state_container.image_fetcher.fetch(image_url)
            styles = await state_container.style_planner.plan(image_bytes)
            result = await state_container.generation_service.generate(
                owner_id=owner_id,
                photo_id=str(uuid4()),
                image_bytes=image_bytes,
                styles=styles,
            )
        except Exception as exc:
            logger.exception("Image generation failed", extra={"owner_id": owner_id})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "status": "internal",
                    "message": f"Failed to generate images: {exc}",
                },
            ) from exc

        logger.info("Generated %s image variations", len(result.generated_urls))
        return {
            "success": True,
            "generatedUrls": result.generated_urls,
            "styles": result.styles,
            "timestamp": datetime.now(tz=UTC).isoformat(),
        }

    return app


async def _read_json(request: Request) -> dict[str, object]:
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        payload = None
    return payload if isinstance(payload, dict) else {}


def _image_url(payload: dict[str, object]) -> str:
    """Return a validated image URL or reject the request."""
    image_url = payload.get("imageUrl")
    if not isinstance(image_url, str) or not image_url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "status": "invalid-argument",
                "message": "imageUrl is required and must be a string",
            },
        )
    return image_url.strip()
