"""Value objects and the error type shared by every pipeline stage.

Stages and orchestrators all import from here so that the stage services
(`transcribe`, `normalizer`, `sentiment`) and the three orchestration styles
agree on one set of shapes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

AudioRequest = str
NormalizedText = str


class StageId(str, Enum):
    """Identity of a pipeline stage, in execution order."""

    A = "A"
    B = "B"
    C = "C"

    @property
    def label(self) -> str:
        return f"Stage {self.value}"

    @property
    def service(self) -> str:
        return _SERVICE_NAMES[self]


_SERVICE_NAMES = {
    StageId.A: "transcription",
    StageId.B: "normalization",
    StageId.C: "sentiment",
}


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Transcript(BaseModel):
    """Structured output of the transcription stage."""

    id: AudioRequest
    text: str
    confidence: float = Field(ge=0.0, le=1.0)

    model_config = {"frozen": True}


class StageFailure(Exception):
    """Raised (or rejected with) when a stage cannot produce its result.

    Carries the failing stage so the terminal handler can report provenance.
    """

    def __init__(self, stage: StageId, message: str) -> None:
        self.stage = stage
        self.message = message
        super().__init__(f"{stage.label}: {message}")


class StageCancelled(StageFailure):
    """Raised when a pending stage call is cancelled before it completes."""

    def __init__(self, stage: StageId) -> None:
        super().__init__(stage, "cancelled")


__all__ = [
    "AudioRequest",
    "NormalizedText",
    "SentimentLabel",
    "StageCancelled",
    "StageFailure",
    "StageId",
    "Transcript",
]
