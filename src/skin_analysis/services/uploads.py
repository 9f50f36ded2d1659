"""Upload stage: object storage write plus image collection entry."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from skin_analysis.domain.errors import (
    EncodingFailed,
    MetadataWriteFailed,
    UploadFailed,
)
from skin_analysis.domain.media import CapturedImage
from skin_analysis.domain.records import ImageEntry, UploadRecord
from skin_analysis.services.encoding import read_blob

_logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPE = "image/jpeg"


class ObjectStorage(Protocol):
    """Interface for durable blob storage."""

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        """Store a blob at the given path."""

    def get_download_url(self, path: str) -> str:
        """Return a durable retrieval URL for a stored blob."""


class ImageRepository(Protocol):
    """Persistence interface for a principal's image collection."""

    def add_image(self, owner_id: str, image_url: str, timestamp: datetime) -> None:
        """Append an image entry."""

    def list_images(self, owner_id: str, limit: int) -> list[ImageEntry]:
        """Return the newest image entries first."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def build_storage_path(owner_id: str, moment: datetime) -> str:
    """Return the object storage path for an image uploaded at `moment`."""
    millis = int(moment.timestamp() * 1000)
    return f"images/{owner_id}/{millis}_image.jpg"


@dataclass
class UploadService:
    """Stores captured images and records them in the image collection."""

    storage: ObjectStorage
    image_repository: ImageRepository
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def upload(self, owner_id: str, image: CapturedImage) -> UploadRecord:
        """Upload the image and return its record.

        Raises MetadataWriteFailed, carrying the record, when only the image
        collection write fails.
        """
        uploaded_at = self.clock()
        storage_path = build_storage_path(owner_id, uploaded_at)
        try:
            data = await read_blob(image)
            await asyncio.to_thread(
                self.storage.upload, storage_path, data, IMAGE_CONTENT_TYPE
            )
            download_url = await asyncio.to_thread(
                self.storage.get_download_url, storage_path
            )
        except EncodingFailed as exc:
            raise UploadFailed(f"Cannot read image for upload: {exc}") from exc
        except Exception as exc:
            raise UploadFailed(f"Failed to store {storage_path}") from exc
        _logger.info("Image uploaded: owner=%s path=%s", owner_id, storage_path)

        record = UploadRecord(
            owner_id=owner_id,
            storage_path=storage_path,
            download_url=download_url,
            uploaded_at=uploaded_at,
        )
        try:
            await asyncio.to_thread(
                self.image_repository.add_image, owner_id, download_url, self.clock()
            )
        except Exception as exc:
            raise MetadataWriteFailed(record) from exc
        return record

    def list_images(self, owner_id: str, limit: int = 20) -> list[ImageEntry]:
        """Return the owner's uploaded images, newest first."""
        return self.image_repository.list_images(owner_id, limit)
