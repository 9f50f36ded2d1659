"""Buffer of pipeline events for polling clients."""

from collections import deque
from dataclasses import dataclass, field

from skin_analysis.domain.pipeline import PipelineEvent


@dataclass
class PipelineEventBuffer:
    """Keeps the most recent pipeline events until a client drains them."""

    max_events: int = 100
    events: deque[PipelineEvent] = field(default_factory=deque)

    def record(self, event: PipelineEvent) -> None:
        """Append an event, dropping the oldest when full."""
        self.events.append(event)
        while len(self.events) > self.max_events:
            self.events.popleft()

    def drain(self) -> list[PipelineEvent]:
        """Return and forget all buffered events."""
        drained = list(self.events)
        self.events.clear()
        return drained
