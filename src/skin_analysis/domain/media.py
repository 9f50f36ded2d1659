"""Domain models for captured media."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path


class MediaSource(Enum):
    """Where a captured image comes from."""

    CAMERA = "camera"
    LIBRARY = "library"

    @property
    def label(self) -> str:
        """Human readable name of the source."""
        return "camera" if self is MediaSource.CAMERA else "photo library"


@dataclass(frozen=True)
class CapturedImage:
    """Local reference to an image picked by the user."""

    path: Path
    source: MediaSource
    captured_at: datetime
