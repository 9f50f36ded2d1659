"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from skin_analysis.domain.media import MediaSource

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_CLASSIFIER_URL = (
    "https://us-central1-eczemacare-1195e.cloudfunctions.net/predictImage"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    storage_bucket: str = "skin-images"
    classifier_url: str = DEFAULT_CLASSIFIER_URL
    media_spool_dir: str = ".media"
    camera_permission: bool = True
    library_permission: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def granted_sources(settings: Settings) -> frozenset[MediaSource]:
    """Return the media sources the user has granted access to."""
    sources: set[MediaSource] = set()
    if settings.camera_permission:
        sources.add(MediaSource.CAMERA)
    if settings.library_permission:
        sources.add(MediaSource.LIBRARY)
    return frozenset(sources)
