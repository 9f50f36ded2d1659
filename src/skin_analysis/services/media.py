"""Media acquisition from the device camera or photo library."""

import logging
from dataclasses import dataclass
from typing import Protocol

from skin_analysis.domain.errors import PermissionDenied
from skin_analysis.domain.media import CapturedImage, MediaSource

_logger = logging.getLogger(__name__)


class MediaPicker(Protocol):
    """Interface for the device media picker."""

    async def request_permission(self, source: MediaSource) -> bool:
        """Ask for access to the source and return whether it was granted."""

    async def launch(self, source: MediaSource) -> CapturedImage | None:
        """Open the picker and return the chosen image, or None if cancelled."""

    def release(self, image: CapturedImage) -> None:
        """Free the local resource behind an image that is no longer needed."""


@dataclass
class MediaAcquisitionService:
    """Requests permission and runs the picker for a media source."""

    picker: MediaPicker

    async def capture_from_device(self) -> CapturedImage | None:
        """Capture a new photo with the camera."""
        return await self.acquire(MediaSource.CAMERA)

    async def pick_from_library(self) -> CapturedImage | None:
        """Select an existing photo from the library."""
        return await self.acquire(MediaSource.LIBRARY)

    async def acquire(self, source: MediaSource) -> CapturedImage | None:
        """Return a captured image, or None when the user backs out."""
        granted = await self.picker.request_permission(source)
        if not granted:
            _logger.info("Media permission denied: source=%s", source.value)
            raise PermissionDenied(source)
        image = await self.picker.launch(source)
        if image is None:
            _logger.info("Media picker cancelled: source=%s", source.value)
        return image

    def release(self, image: CapturedImage) -> None:
        """Hand a discarded image back to the picker."""
        self.picker.release(image)
