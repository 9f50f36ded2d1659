"""State machine driving the capture, upload, analysis and persistence stages."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from skin_analysis.domain.errors import (
    AlreadyRunning,
    ConnectivityError,
    EncodingFailed,
    InvalidTransition,
    MetadataWriteFailed,
    NoImageSelected,
    PermissionDenied,
    PersistenceFailed,
    RemoteServiceError,
    Unauthenticated,
    UploadFailed,
)
from skin_analysis.domain.media import CapturedImage, MediaSource
from skin_analysis.domain.pipeline import (
    IN_FLIGHT_STAGES,
    TERMINAL_STAGES,
    PipelineEvent,
    PipelineState,
    Stage,
)
from skin_analysis.services.analysis import AnalysisService
from skin_analysis.services.credentials import CredentialProvider
from skin_analysis.services.encoding import encode_image
from skin_analysis.services.media import MediaAcquisitionService
from skin_analysis.services.persistence import PersistenceService
from skin_analysis.services.uploads import UploadService

_logger = logging.getLogger(__name__)

PipelineListener = Callable[[PipelineEvent], None]

RESULT_ROUTE = "treatment"


@dataclass
class PipelineController:
    """Owns the pipeline state and runs at most one capture at a time."""

    media: MediaAcquisitionService
    credentials: CredentialProvider
    upload_service: UploadService
    analysis_service: AnalysisService
    persistence_service: PersistenceService
    listeners: list[PipelineListener] = field(default_factory=list)
    state: PipelineState = field(default_factory=PipelineState.idle)
    image: CapturedImage | None = None

    def subscribe(self, listener: PipelineListener) -> None:
        """Register a callback for state, notice and navigation events."""
        self.listeners.append(listener)

    async def capture_from_device(self) -> PipelineState:
        """Take a new photo with the camera."""
        return await self._acquire(MediaSource.CAMERA)

    async def pick_from_library(self) -> PipelineState:
        """Select a photo from the library."""
        return await self._acquire(MediaSource.LIBRARY)

    def begin(self) -> CapturedImage:
        """Enter the saving stage, failing fast unless a captured image is idle."""
        if self.state.stage in IN_FLIGHT_STAGES:
            raise AlreadyRunning(f"Pipeline is busy: {self.state.stage.value}")
        if self.state.stage in TERMINAL_STAGES:
            raise InvalidTransition(f"Cannot save in stage {self.state.stage.value}")
        if self.image is None:
            raise NoImageSelected("Select or capture an image first.")
        self._transition(Stage.SAVING, "Processing...", "Saving image...")
        return self.image

    async def save(self) -> PipelineState:
        """Run upload, analysis and persistence for the captured image.

        Stage failures end the run in the failed stage and are not raised.
        """
        image = self.begin()
        try:
            await self._run(image)
        except Exception:
            _logger.exception("Pipeline run failed unexpectedly")
            self._fail("Something went wrong. Please try again.")
        return self.state

    def dismiss(self) -> PipelineState:
        """Close a failed run and return to idle."""
        if not self.state.dismissible:
            raise InvalidTransition(f"Cannot dismiss in stage {self.state.stage.value}")
        self._discard_image()
        self._transition(Stage.IDLE)
        return self.state

    def reset(self) -> PipelineState:
        """Forget the captured image when the screen is abandoned."""
        if self.state.stage in IN_FLIGHT_STAGES:
            raise AlreadyRunning("Cannot reset while a run is in flight.")
        self._discard_image()
        if self.state.stage is not Stage.IDLE:
            self._transition(Stage.IDLE)
        return self.state

    async def _acquire(self, source: MediaSource) -> PipelineState:
        if self.state.stage in IN_FLIGHT_STAGES:
            raise AlreadyRunning(f"Pipeline is busy: {self.state.stage.value}")
        resting = Stage.CAPTURED if self.image is not None else Stage.IDLE
        if self.state.stage is not resting:
            # A new capture starts over after a finished run.
            self._discard_image()
            resting = Stage.IDLE
        self._transition(Stage.CAPTURING)
        try:
            image = await self.media.acquire(source)
        except PermissionDenied as exc:
            self._notify(str(exc))
            self._transition(resting)
            return self.state
        except Exception:
            _logger.exception("Media picker failed: source=%s", source.value)
            self._notify("Could not open the picker. Please try again.")
            self._transition(resting)
            return self.state
        if image is None:
            self._notify(f"Image selection from the {source.label} was cancelled.")
            self._transition(resting)
            return self.state
        self._discard_image()
        self.image = image
        self._transition(Stage.CAPTURED)
        return self.state

    async def _run(self, image: CapturedImage) -> None:
        try:
            credential = await self.credentials.get_credential()
        except Unauthenticated:
            self._fail("You are not signed in. Please sign in and try again.")
            return

        try:
            await self.upload_service.upload(credential.principal_id, image)
        except MetadataWriteFailed as exc:
            _logger.warning(
                "Image stored without collection entry: path=%s",
                exc.record.storage_path,
            )
        except UploadFailed:
            _logger.exception("Image upload failed")
            self._fail("Failed to save image. Please try again.")
            return
        self._notify("Image saved.")

        self._transition(Stage.ANALYZING, "Processing...", "Analyzing image...")
        try:
            base64_image = await encode_image(image)
            fresh = await self.credentials.get_credential()
            result = await self.analysis_service.analyze(
                base64_image, fresh.bearer_token
            )
        except EncodingFailed:
            _logger.exception("Image encoding failed")
            self._fail("Failed to read the image for analysis.")
            return
        except Unauthenticated as exc:
            self._fail(f"Classification service error: {exc}")
            return
        except RemoteServiceError as exc:
            _logger.error("Classification service error: %s", exc)
            self._fail(f"Classification service error: {exc}")
            return
        except ConnectivityError as exc:
            _logger.error("Classification service unreachable: %s", exc)
            self._fail(f"Could not reach the classification service: {exc}")
            return

        try:
            await self.persistence_service.persist(credential.principal_id, result)
        except PersistenceFailed:
            _logger.exception("Analysis persistence failed")
            self._fail("Failed to save analysis. Please try again.")
            return

        self._discard_image()
        self._transition(Stage.SUCCEEDED, "Success", "Analysis saved successfully.")
        self._emit(PipelineEvent(kind="navigate", route=RESULT_ROUTE))

    def _discard_image(self) -> None:
        if self.image is not None:
            self.media.release(self.image)
            self.image = None

    def _fail(self, message: str) -> None:
        self._transition(Stage.FAILED, "Error", message, dismissible=True)

    def _transition(
        self,
        stage: Stage,
        title: str = "",
        message: str = "",
        dismissible: bool = False,
    ) -> None:
        _logger.info("Pipeline stage: %s -> %s", self.state.stage.value, stage.value)
        self.state = PipelineState(
            stage=stage, title=title, message=message, dismissible=dismissible
        )
        self._emit(PipelineEvent(kind="state", state=self.state))

    def _notify(self, message: str) -> None:
        self._emit(PipelineEvent(kind="notice", message=message))

    def _emit(self, event: PipelineEvent) -> None:
        for listener in self.listeners:
            try:
                listener(event)
            except Exception:
                _logger.exception("Pipeline listener failed: kind=%s", event.kind)
