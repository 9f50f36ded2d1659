"""Media picker fed by images the client posts over HTTP."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

from skin_analysis.domain.media import CapturedImage, MediaSource
from skin_analysis.services.media import MediaPicker


@dataclass
class StagedMediaPicker(MediaPicker):
    """Picker that hands out images previously staged into a spool directory.

    Launching a source with nothing staged counts as a cancelled picker.
    Spooled files live until their image is released.
    """

    spool_dir: Path
    granted_sources: frozenset[MediaSource]
    pending: dict[MediaSource, Path] = field(default_factory=dict)
    spooled: set[Path] = field(default_factory=set)

    def stage(self, source: MediaSource, data: bytes) -> None:
        """Stage image bytes for the next launch of `source`."""
        previous = self.pending.pop(source, None)
        if previous is not None:
            self._unlink(previous)
        if not data:
            return
        self.spool_dir.mkdir(parents=True, exist_ok=True)
        path = self.spool_dir / f"{uuid4().hex}.jpg"
        path.write_bytes(data)
        self.spooled.add(path)
        self.pending[source] = path

    async def request_permission(self, source: MediaSource) -> bool:
        """Return whether the source is enabled.

        A denied source drops whatever was staged for it.
        """
        if source in self.granted_sources:
            return True
        previous = self.pending.pop(source, None)
        if previous is not None:
            self._unlink(previous)
        return False

    async def launch(self, source: MediaSource) -> CapturedImage | None:
        """Return the staged image for the source, if any."""
        path = self.pending.pop(source, None)
        if path is None:
            return None
        return CapturedImage(
            path=path, source=source, captured_at=datetime.now(tz=UTC)
        )

    def release(self, image: CapturedImage) -> None:
        """Delete the spooled file behind a discarded image."""
        self._unlink(image.path)

    def cleanup(self) -> None:
        """Remove every spooled file."""
        for path in list(self.spooled):
            self._unlink(path)
        self.pending.clear()

    def _unlink(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        self.spooled.discard(path)
