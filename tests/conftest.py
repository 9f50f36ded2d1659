"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from skin_analysis.adapters.staged_media_picker import StagedMediaPicker
from skin_analysis.config import Settings
from skin_analysis.containers import AppContainer
from skin_analysis.domain.errors import Unauthenticated
from skin_analysis.domain.media import CapturedImage, MediaSource
from skin_analysis.domain.records import AnalysisRecord, AnalysisResult, ImageEntry
from skin_analysis.services.analysis import AnalysisService, ClassificationClient
from skin_analysis.services.credentials import Credential, IdentityProvider
from skin_analysis.services.media import MediaAcquisitionService, MediaPicker
from skin_analysis.services.persistence import AnalysisRepository, PersistenceService
from skin_analysis.services.pipeline import PipelineController
from skin_analysis.services.uploads import ImageRepository, ObjectStorage, UploadService

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"skin-photo" * 8


@dataclass
class TickingClock:
    """Clock that advances one millisecond per call."""

    start: datetime = field(default_factory=lambda: datetime(2024, 5, 1, tzinfo=UTC))
    ticks: int = 0

    def __call__(self) -> datetime:
        moment = self.start + timedelta(milliseconds=self.ticks)
        self.ticks += 1
        return moment


@dataclass
class FakeCredentialProvider(IdentityProvider):
    """Credential provider that hands out numbered tokens."""

    principal_id: str = "user-1"
    password: str = "secret"
    signed_in: bool = True
    calls: int = 0
    fail_on_call: int | None = None

    def sign_in(self, email: str, password: str) -> str:
        if password != self.password:
            raise Unauthenticated("Invalid login credentials")
        self.signed_in = True
        return self.principal_id

    async def get_credential(self) -> Credential:
        if not self.signed_in:
            raise Unauthenticated("User not authenticated")
        self.calls += 1
        if self.fail_on_call is not None and self.calls >= self.fail_on_call:
            raise Unauthenticated("expired")
        return Credential(
            principal_id=self.principal_id, bearer_token=f"token-{self.calls}"
        )


@dataclass
class FakeMediaPicker(MediaPicker):
    """Picker returning queued images, or None when the queue is empty."""

    granted: set[MediaSource] = field(
        default_factory=lambda: {MediaSource.CAMERA, MediaSource.LIBRARY}
    )
    images: list[CapturedImage] = field(default_factory=list)
    launches: list[MediaSource] = field(default_factory=list)
    released: list[CapturedImage] = field(default_factory=list)

    async def request_permission(self, source: MediaSource) -> bool:
        return source in self.granted

    async def launch(self, source: MediaSource) -> CapturedImage | None:
        self.launches.append(source)
        if not self.images:
            return None
        return self.images.pop(0)

    def release(self, image: CapturedImage) -> None:
        self.released.append(image)


@dataclass
class InMemoryObjectStorage(ObjectStorage):
    """In-memory object storage for tests."""

    blobs: dict[str, bytes] = field(default_factory=dict)
    fail_upload: bool = False

    def upload(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail_upload:
            raise RuntimeError("storage unavailable")
        self.blobs[path] = data

    def get_download_url(self, path: str) -> str:
        return f"https://storage.test/{path}"


@dataclass
class InMemoryImageRepository(ImageRepository):
    """In-memory image collection for tests."""

    entries: list[tuple[str, ImageEntry]] = field(default_factory=list)
    fail: bool = False

    def add_image(self, owner_id: str, image_url: str, timestamp: datetime) -> None:
        if self.fail:
            raise RuntimeError("document store unavailable")
        self.entries.append(
            (owner_id, ImageEntry(image_url=image_url, timestamp=timestamp))
        )

    def list_images(self, owner_id: str, limit: int) -> list[ImageEntry]:
        owned = [entry for owner, entry in self.entries if owner == owner_id]
        owned.sort(key=lambda entry: entry.timestamp, reverse=True)
        return owned[:limit]


@dataclass
class InMemoryAnalysisRepository(AnalysisRepository):
    """In-memory analysis history for tests."""

    records: list[AnalysisRecord] = field(default_factory=list)
    fail: bool = False

    def save_analysis(self, record: AnalysisRecord) -> None:
        if self.fail:
            raise RuntimeError("document store unavailable")
        self.records.append(record)

    def list_analyses(self, owner_id: str, limit: int) -> list[AnalysisRecord]:
        owned = [record for record in self.records if record.owner_id == owner_id]
        owned.sort(key=lambda record: record.recorded_at, reverse=True)
        return owned[:limit]


@dataclass
class FakeClassificationClient(ClassificationClient):
    """Classification client returning a canned result or raising an error."""

    result: AnalysisResult = field(default_factory=lambda: {"severity": "mild"})
    error: Exception | None = None
    gate: asyncio.Event | None = None
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def classify(self, base64_image: str, bearer_token: str) -> AnalysisResult:
        self.calls.append((base64_image, bearer_token))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class PipelineHarness:
    """Controller wired to in-memory collaborators."""

    controller: PipelineController
    picker: FakeMediaPicker
    credentials: FakeCredentialProvider
    storage: InMemoryObjectStorage
    images: InMemoryImageRepository
    analyses: InMemoryAnalysisRepository
    classifier: FakeClassificationClient
    events: list = field(default_factory=list)


def build_harness(image_path: Path | None = None) -> PipelineHarness:
    """Create a controller with fakes; queue one image when a path is given."""
    clock = TickingClock()
    picker = FakeMediaPicker()
    if image_path is not None:
        picker.images.append(
            CapturedImage(
                path=image_path, source=MediaSource.CAMERA, captured_at=clock()
            )
        )
    credentials = FakeCredentialProvider()
    storage = InMemoryObjectStorage()
    images = InMemoryImageRepository()
    analyses = InMemoryAnalysisRepository()
    classifier = FakeClassificationClient()
    controller = PipelineController(
        media=MediaAcquisitionService(picker),
        credentials=credentials,
        upload_service=UploadService(
            storage=storage, image_repository=images, clock=clock
        ),
        analysis_service=AnalysisService(classifier),
        persistence_service=PersistenceService(analyses, clock=clock),
    )
    harness = PipelineHarness(
        controller=controller,
        picker=picker,
        credentials=credentials,
        storage=storage,
        images=images,
        analyses=analyses,
        classifier=classifier,
    )
    controller.subscribe(harness.events.append)
    return harness


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="header.payload.signature",
        media_spool_dir=str(tmp_path / "spool"),
    )


@pytest.fixture
def image_path(tmp_path: Path) -> Path:
    path = tmp_path / "photo.jpg"
    path.write_bytes(JPEG_BYTES)
    return path


@pytest.fixture
def harness(image_path: Path) -> PipelineHarness:
    return build_harness(image_path)


@pytest.fixture
def container(settings: Settings, harness: PipelineHarness) -> AppContainer:
    media_picker = StagedMediaPicker(
        spool_dir=Path(settings.media_spool_dir),
        granted_sources=frozenset({MediaSource.CAMERA, MediaSource.LIBRARY}),
    )
    controller = harness.controller
    controller.media = MediaAcquisitionService(media_picker)

    async def close_resources() -> None:
        media_picker.cleanup()

    return AppContainer(
        settings=settings,
        media_picker=media_picker,
        credential_provider=harness.credentials,
        upload_service=controller.upload_service,
        persistence_service=controller.persistence_service,
        pipeline_controller=controller,
        close_resources=close_resources,
    )
