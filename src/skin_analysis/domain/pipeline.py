"""Pipeline run state shown to the presentation layer."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class Stage(Enum):
    """Stage of the capture-to-result pipeline."""

    IDLE = "idle"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    SAVING = "saving"
    ANALYZING = "analyzing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


IN_FLIGHT_STAGES = frozenset({Stage.CAPTURING, Stage.SAVING, Stage.ANALYZING})
TERMINAL_STAGES = frozenset({Stage.SUCCEEDED, Stage.FAILED})


@dataclass(frozen=True)
class PipelineState:
    """Visible progress of the current run."""

    stage: Stage
    title: str = ""
    message: str = ""
    dismissible: bool = False

    @classmethod
    def idle(cls) -> "PipelineState":
        return cls(stage=Stage.IDLE)

    def to_dict(self) -> dict[str, object]:
        return {
            "stage": self.stage.value,
            "title": self.title,
            "message": self.message,
            "dismissible": self.dismissible,
        }


@dataclass(frozen=True)
class PipelineEvent:
    """Event emitted by the pipeline controller."""

    kind: Literal["state", "notice", "navigate"]
    state: PipelineState | None = None
    message: str | None = None
    route: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"kind": self.kind}
        if self.state is not None:
            payload["state"] = self.state.to_dict()
        if self.message is not None:
            payload["message"] = self.message
        if self.route is not None:
            payload["route"] = self.route
        return payload
