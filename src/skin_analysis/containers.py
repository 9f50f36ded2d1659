"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from skin_analysis.adapters.classification_client import HttpxClassificationClient
from skin_analysis.adapters.staged_media_picker import StagedMediaPicker
from skin_analysis.adapters.supabase_analysis_repository import (
    SupabaseAnalysisRepository,
)
from skin_analysis.adapters.supabase_credential_provider import (
    SupabaseCredentialProvider,
)
from skin_analysis.adapters.supabase_image_repository import SupabaseImageRepository
from skin_analysis.adapters.supabase_object_storage import SupabaseObjectStorage
from skin_analysis.config import Settings, granted_sources
from skin_analysis.services.analysis import AnalysisService
from skin_analysis.services.credentials import IdentityProvider
from skin_analysis.services.media import MediaAcquisitionService
from skin_analysis.services.persistence import PersistenceService
from skin_analysis.services.pipeline import PipelineController
from skin_analysis.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    media_picker: StagedMediaPicker
    credential_provider: IdentityProvider
    upload_service: UploadService
    persistence_service: PersistenceService
    pipeline_controller: PipelineController
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    credential_provider = SupabaseCredentialProvider(supabase_client)
    media_picker = StagedMediaPicker(
        spool_dir=Path(resolved_settings.media_spool_dir),
        granted_sources=granted_sources(resolved_settings),
    )
    upload_service = UploadService(
        storage=SupabaseObjectStorage(
            client=supabase_client, bucket=resolved_settings.storage_bucket
        ),
        image_repository=SupabaseImageRepository(supabase_client),
    )
    classification_client = HttpxClassificationClient.create(
        resolved_settings.classifier_url
    )
    persistence_service = PersistenceService(
        SupabaseAnalysisRepository(supabase_client)
    )
    pipeline_controller = PipelineController(
        media=MediaAcquisitionService(media_picker),
        credentials=credential_provider,
        upload_service=upload_service,
        analysis_service=AnalysisService(classification_client),
        persistence_service=persistence_service,
    )

    async def close_resources() -> None:
        await classification_client.close()
        media_picker.cleanup()

    return AppContainer(
        settings=resolved_settings,
        media_picker=media_picker,
        credential_provider=credential_provider,
        upload_service=upload_service,
        persistence_service=persistence_service,
        pipeline_controller=pipeline_controller,
        close_resources=close_resources,
    )
