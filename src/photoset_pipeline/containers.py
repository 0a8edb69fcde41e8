"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from photoset_pipeline.adapters.supabase_blob_store import SupabaseBlobStore
from photoset_pipeline.adapters.supabase_photo_set_repository import (
    SupabasePhotoSetRepository,
)
from photoset_pipeline.config import Settings, parse_content_types
from photoset_pipeline.services.photo_sets import PhotoSetService
from photoset_pipeline.services.submissions import SubmissionService
from photoset_pipeline.services.transcoding import Transcoder
from photoset_pipeline.services.uploads import BlobUploader
from photoset_pipeline.services.validation import UploadPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    submission_service: SubmissionService
    photo_set_service: PhotoSetService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    repository = SupabasePhotoSetRepository(supabase_client)
    blob_store = SupabaseBlobStore(
        client=supabase_client, bucket=resolved_settings.storage_bucket
    )
    submission_service = SubmissionService(
        uploader=BlobUploader(
            store=blob_store,
            timeout_seconds=resolved_settings.upload_timeout_seconds,
        ),
        transcoder=build_transcoder(resolved_settings),
        repository=repository,
        upload_policy=UploadPolicy(
            allowed_types=parse_content_types(resolved_settings.allowed_content_types),
            max_file_size_bytes=resolved_settings.max_file_size_bytes,
        ),
    )
    photo_set_service = PhotoSetService(repository=repository, blob_store=blob_store)

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=resolved_settings,
        submission_service=submission_service,
        photo_set_service=photo_set_service,
        close_resources=close_resources,
    )


def build_transcoder(settings: Settings) -> Transcoder:
    """Create the transcoder configured by settings."""
    return Transcoder(
        max_dimension=settings.max_image_dimension,
        quality=settings.image_quality,
        auto_rotate=settings.auto_rotate_images,
    )
