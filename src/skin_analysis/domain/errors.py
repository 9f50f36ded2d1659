"""Errors raised by pipeline stages and the pipeline controller."""

from skin_analysis.domain.media import MediaSource
from skin_analysis.domain.records import UploadRecord


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    fatal = True


class Unauthenticated(PipelineError):
    """Raised when no principal is signed in or the token cannot be refreshed."""


class PermissionDenied(PipelineError):
    """Raised when the user denies access to the camera or the photo library."""

    def __init__(self, source: MediaSource) -> None:
        super().__init__(f"Permission to access the {source.label} was not granted.")
        self.source = source


class EncodingFailed(PipelineError):
    """Raised when a captured image cannot be read."""


class UploadFailed(PipelineError):
    """Raised when the image blob cannot be stored."""


class MetadataWriteFailed(PipelineError):
    """Raised when the blob is stored but its image entry is not recorded.

    The upload itself succeeded, so the error carries the finished record and
    callers continue with it.
    """

    fatal = False

    def __init__(self, record: UploadRecord) -> None:
        super().__init__(f"Failed to record image entry for {record.storage_path}")
        self.record = record


class RemoteServiceError(PipelineError):
    """Raised when the classification service answers with a non-2xx status."""

    def __init__(self, status_code: int, status_text: str) -> None:
        super().__init__(f"{status_code} {status_text}".strip())
        self.status_code = status_code
        self.status_text = status_text


class ConnectivityError(PipelineError):
    """Raised when the classification service cannot be reached."""


class PersistenceFailed(PipelineError):
    """Raised when an analysis record cannot be written."""


class InvalidTransition(PipelineError):
    """Raised when an action is not allowed in the current pipeline stage."""


class AlreadyRunning(InvalidTransition):
    """Raised when a run is requested while another one is in flight."""


class NoImageSelected(InvalidTransition):
    """Raised when saving is requested before an image was captured."""
