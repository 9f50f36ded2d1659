"""Records produced by the upload and analysis stages."""

from dataclasses import dataclass
from datetime import datetime
from typing import TypeAlias

AnalysisResult: TypeAlias = dict[str, object]


@dataclass(frozen=True)
class UploadRecord:
    """Stored image blob and its retrieval URL."""

    owner_id: str
    storage_path: str
    download_url: str
    uploaded_at: datetime


@dataclass(frozen=True)
class ImageEntry:
    """Row of a principal's image collection."""

    image_url: str
    timestamp: datetime


@dataclass(frozen=True)
class AnalysisRecord:
    """Persisted classification result."""

    owner_id: str
    result: AnalysisResult
    recorded_at: datetime

    @property
    def key(self) -> str:
        """Document key of the record."""
        return self.recorded_at.isoformat()
