"""Continuation-passing orchestration.

Each stage is started with an explicit completion handler, and the handler for
one stage is what starts the next. Failures are not forwarded automatically:
every call site passes its own error branch, which here ends the run.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from speechflow.pipelines.speech.state import PipelineRun
from speechflow.pipelines.speech.types import PipelineOutcome, PipelineServices
from speechflow.services.contracts import (
    NormalizedText,
    SentimentLabel,
    StageCancelled,
    StageFailure,
    StageId,
    Transcript,
)
from speechflow.services.deferred import Deferred
from speechflow.services.stage import StageCall

OutcomeHandler = Callable[[PipelineOutcome], Any]


class CallbackRun:
    """Handle on a running continuation-style pipeline."""

    def __init__(self, run: PipelineRun, on_outcome: OutcomeHandler) -> None:
        self.run = run
        self._on_outcome = on_outcome
        self.current: Optional[StageCall] = None

    @property
    def outcome(self) -> Optional[PipelineOutcome]:
        return self.run.outcome

    def cancel(self) -> bool:
        """Cancel the stage in flight and end the run as a failure."""

        call = self.current
        if call is None or not call.cancel():
            return False
        self.current = None
        self._on_outcome(self.run.fail(StageCancelled(call.stage)))
        return True


class CallbackPipeline:
    """Run A, B, C by nesting completion handlers."""

    style = "callbacks"

    def __init__(self, services: PipelineServices) -> None:
        self._services = services

    def run(self, request: str, on_outcome: OutcomeHandler) -> CallbackRun:
        """Start a run; ``on_outcome`` receives the terminal outcome."""

        services = self._services
        run = PipelineRun(request, services.reporter, style=self.style)
        handle = CallbackRun(run, on_outcome)

        def on_transcription_error(failure: StageFailure) -> None:
            handle.current = None
            on_outcome(run.fail(failure))

        def on_normalization_error(failure: StageFailure) -> None:
            handle.current = None
            on_outcome(run.fail(failure))

        def on_sentiment_error(failure: StageFailure) -> None:
            handle.current = None
            on_outcome(run.fail(failure))

        def on_transcript(transcript: Transcript) -> None:
            run.record(StageId.A, transcript)

            def on_text(text: NormalizedText) -> None:
                run.record(StageId.B, text)

                def on_sentiment(sentiment: SentimentLabel) -> None:
                    handle.current = None
                    run.record(StageId.C, sentiment)
                    on_outcome(run.succeed(text, sentiment))

                run.enter(StageId.C)
                handle.current = services.sentiment.start(
                    text, on_sentiment, on_sentiment_error, request=request
                )

            run.enter(StageId.B)
            handle.current = services.normalization.start(
                transcript, on_text, on_normalization_error, request=request
            )

        run.announce()
        run.enter(StageId.A)
        handle.current = services.transcription.start(
            request, on_transcript, on_transcription_error, request=request
        )
        return handle

    def defer(self, request: str) -> Deferred[PipelineOutcome]:
        """Start a run and expose its outcome as a Deferred."""

        handle: Optional[CallbackRun] = None

        def _cancel(deferred: Deferred[PipelineOutcome]) -> None:
            if handle is not None:
                handle.cancel()

        deferred: Deferred[PipelineOutcome] = Deferred(canceller=_cancel)
        handle = self.run(request, deferred.resolve)
        return deferred


__all__ = ["CallbackPipeline", "CallbackRun"]
