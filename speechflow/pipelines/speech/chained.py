"""Deferred-value orchestration.

Every stage call returns a Deferred. The steps are sequenced with ``then``;
returning the next stage's Deferred from a step makes the chain wait for it.
One ``catch`` at the end receives the first failure from any step, and the
steps after it are skipped.
"""

from __future__ import annotations

from typing import Any

from speechflow.pipelines.speech.state import PipelineRun
from speechflow.pipelines.speech.types import PipelineOutcome, PipelineServices
from speechflow.services.contracts import (
    NormalizedText,
    SentimentLabel,
    StageFailure,
    StageId,
    Transcript,
)
from speechflow.services.deferred import Deferred


class ChainedPipeline:
    """Run A, B, C as one chain of Deferreds with a single error sink."""

    style = "chained"

    def __init__(self, services: PipelineServices) -> None:
        self._services = services

    def run(self, request: str) -> Deferred[PipelineOutcome]:
        """Start a run. Cancelling the result cancels the stage in flight."""

        services = self._services
        run = PipelineRun(request, services.reporter, style=self.style)
        normalized: dict[str, NormalizedText] = {}

        def transcribed(transcript: Transcript) -> Deferred[NormalizedText]:
            run.record(StageId.A, transcript)
            run.enter(StageId.B)
            return services.normalization.defer(transcript, request=request)

        def post_processed(text: NormalizedText) -> Deferred[SentimentLabel]:
            run.record(StageId.B, text)
            normalized["text"] = text
            run.enter(StageId.C)
            return services.sentiment.defer(text, request=request)

        def analyzed(sentiment: SentimentLabel) -> PipelineOutcome:
            run.record(StageId.C, sentiment)
            return run.succeed(normalized["text"], sentiment)

        def failed(error: BaseException) -> Any:
            if isinstance(error, StageFailure):
                return run.fail(error)
            raise error

        run.announce()
        run.enter(StageId.A)
        return (
            services.transcription.defer(request)
            .then(transcribed)
            .then(post_processed)
            .then(analyzed)
            .catch(failed)
        )


__all__ = ["ChainedPipeline"]
