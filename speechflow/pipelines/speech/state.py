"""Per-run state machine shared by every orchestration style.

A run moves ``IDLE -> AWAITING_A -> AWAITING_B -> AWAITING_C -> DONE``. Any
``AWAITING_*`` state may instead move to ``FAILED``, which is absorbing. The
machine refuses to enter a stage twice, so each stage runs at most once per
run regardless of how the orchestrator is written.

The run also owns the orchestrator's progress lines, which keeps them
byte-identical across the three styles.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List

from speechflow.pipelines.speech.types import PipelineOutcome
from speechflow.services.contracts import (
    NormalizedText,
    SentimentLabel,
    StageFailure,
    StageId,
    Transcript,
)
from speechflow.services.progress import ProgressKind, ProgressReporter
from speechflow.telemetry import observe_pipeline

logger = logging.getLogger(__name__)

PIPELINE_SOURCE = "pipeline"


class PipelineState(str, Enum):
    IDLE = "idle"
    AWAITING_A = "awaiting_a"
    AWAITING_B = "awaiting_b"
    AWAITING_C = "awaiting_c"
    DONE = "done"
    FAILED = "failed"


_AWAITING = {
    StageId.A: PipelineState.AWAITING_A,
    StageId.B: PipelineState.AWAITING_B,
    StageId.C: PipelineState.AWAITING_C,
}
_NEXT_STAGE = {
    PipelineState.IDLE: StageId.A,
    PipelineState.AWAITING_A: StageId.B,
    PipelineState.AWAITING_B: StageId.C,
}
_STEP_NUMBERS = {StageId.A: 1, StageId.B: 2, StageId.C: 3}


class InvalidTransition(RuntimeError):
    """Raised when an orchestrator drives a run out of stage order."""


class PipelineRun:
    """State and progress reporting for one pipeline invocation."""

    def __init__(self, request: str, reporter: ProgressReporter, *, style: str) -> None:
        self.request = request
        self.style = style
        self._reporter = reporter
        self.state = PipelineState.IDLE
        self.history: List[PipelineState] = [PipelineState.IDLE]
        self.outcome: PipelineOutcome | None = None

    @property
    def finished(self) -> bool:
        return self.state in (PipelineState.DONE, PipelineState.FAILED)

    @property
    def awaiting(self) -> StageId | None:
        """Stage whose result the run is waiting for, if any."""
        for stage, state in _AWAITING.items():
            if state is self.state:
                return stage
        return None

    def announce(self) -> None:
        if self.state is not PipelineState.IDLE:
            raise InvalidTransition(f"run for {self.request} already started")
        self._emit(ProgressKind.STARTED, f"Starting pipeline for audio: {self.request}...")

    def enter(self, stage: StageId) -> None:
        """Move to the state awaiting ``stage``; call just before invoking it."""

        expected = _NEXT_STAGE.get(self.state)
        if expected is not stage:
            raise InvalidTransition(
                f"cannot start {stage.label} from state {self.state.value}"
            )
        self._move(_AWAITING[stage])

    def record(self, stage: StageId, value: Any) -> None:
        """Report the result of the stage currently awaited."""

        if self.state is not _AWAITING[stage]:
            raise InvalidTransition(
                f"{stage.label} result arrived in state {self.state.value}"
            )
        self._emit(ProgressKind.STEP, self._step_message(stage, value))

    def succeed(self, text: NormalizedText, sentiment: SentimentLabel) -> PipelineOutcome:
        if self.state is not PipelineState.AWAITING_C:
            raise InvalidTransition(f"cannot finish from state {self.state.value}")
        self._move(PipelineState.DONE)
        self._emit(ProgressKind.COMPLETED, f"Pipeline complete for {self.request}.")
        return self._conclude(PipelineOutcome.succeeded(self.request, text, sentiment))

    def fail(self, failure: StageFailure) -> PipelineOutcome:
        if self.state not in _AWAITING.values():
            raise InvalidTransition(f"cannot fail from state {self.state.value}")
        self._move(PipelineState.FAILED)
        self._emit(ProgressKind.FAILED, f"Error in pipeline for {self.request}: {failure}")
        return self._conclude(PipelineOutcome.failed(self.request, failure))

    def _conclude(self, outcome: PipelineOutcome) -> PipelineOutcome:
        self.outcome = outcome
        observe_pipeline(self.style, outcome.success)
        logger.debug("Run %s (%s) finished: %s", self.request, self.style, outcome)
        return outcome

    def _move(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def _emit(self, kind: ProgressKind, message: str) -> None:
        self._reporter.emit(PIPELINE_SOURCE, kind, message, request=self.request)

    @staticmethod
    def _step_message(stage: StageId, value: Any) -> str:
        number = _STEP_NUMBERS[stage]
        if stage is StageId.A:
            transcript: Transcript = value
            return f"Step {number}: Raw transcription received: {transcript.text}"
        if stage is StageId.B:
            return f"Step {number}: Post-processed text: {value}"
        return f"Step {number}: Sentiment analyzed: {SentimentLabel(value).value}"


__all__ = ["InvalidTransition", "PipelineRun", "PipelineState"]
