"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from photo_restyler.adapters.gemini_image_client import GeminiImageStreamClient
from photo_restyler.adapters.image_fetcher import HttpxImageFetcher, ImageFetcher
from photo_restyler.adapters.openai_vision_client import OpenAIVisionClient
from photo_restyler.adapters.supabase_blob_store import SupabaseBlobStore
from photo_restyler.adapters.supabase_photo_repository import SupabasePhotoRepository
from photo_restyler.adapters.supabase_saved_image_repository import (
    SupabaseSavedImageRepository,
)
from photo_restyler.adapters.supabase_token_verifier import SupabaseTokenVerifier
from photo_restyler.config import Settings
from photo_restyler.services.auth import AuthProvider, TokenVerifier
from photo_restyler.services.generation import GenerationService
from photo_restyler.services.photos import PhotoLibraryService
from photo_restyler.services.pipeline import GenerationPipeline
from photo_restyler.services.storage import BlobStorageService
from photo_restyler.services.styles import StylePlanner, create_style_planner


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    storage_service: BlobStorageService
    photo_library: PhotoLibraryService
    style_planner: StylePlanner
    generation_service: GenerationService
    token_verifier: TokenVerifier
    image_fetcher: ImageFetcher
    close_resources: Callable[[], Awaitable[None]]

    def create_pipeline(self, auth: AuthProvider) -> GenerationPipeline:
        """Build a pipeline for one signed-in owner."""
        return GenerationPipeline(
            auth=auth,
            storage=self.storage_service,
            library=self.photo_library,
            planner=self.style_planner,
            generator=self.generation_service,
            upload_max_attempts=self.settings.upload_max_attempts,
            upload_initial_delay=self.settings.upload_initial_delay_seconds,
            upload_backoff_factor=self.settings.upload_backoff_factor,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    storage_service = BlobStorageService(
        SupabaseBlobStore(supabase_client, resolved_settings.storage_bucket)
    )
    photo_library = PhotoLibraryService(
        photo_repository=SupabasePhotoRepository(supabase_client),
        saved_repository=SupabaseSavedImageRepository(supabase_client),
    )
    vision_client = (
        OpenAIVisionClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )
    style_planner = create_style_planner(
        resolved_settings.style_planner,
        count=resolved_settings.style_count,
        client=vision_client,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    generation_service = GenerationService(
        client=GeminiImageStreamClient.create(
            api_key=resolved_settings.gemini_api_key,
            model=resolved_settings.gemini_image_model,
            image_size=resolved_settings.gemini_image_size,
        ),
        storage=storage_service,
        timeout_seconds=resolved_settings.generation_timeout_seconds,
        upload_attempts=resolved_settings.variant_upload_attempts,
    )
    image_fetcher = HttpxImageFetcher.create(
        timeout_seconds=resolved_settings.image_download_timeout_seconds
    )

    async def close_resources() -> None:
        await image_fetcher.close()
        if vision_client is not None:
            await vision_client.close()

    return AppContainer(
        settings=resolved_settings,
        storage_service=storage_service,
        photo_library=photo_library,
        style_planner=style_planner,
        generation_service=generation_service,
        token_verifier=SupabaseTokenVerifier(supabase_client),
        image_fetcher=image_fetcher,
        close_resources=close_resources,
    )
