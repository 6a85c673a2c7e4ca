"""Suspend-on-await orchestration.

The pipeline is one straight-line coroutine. Each ``await`` suspends only this
coroutine until the stage's Deferred settles; the event loop keeps running
other work meanwhile. A single ``try`` around the body turns the first stage
failure into the run's outcome.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from speechflow.pipelines.speech.state import PipelineRun
from speechflow.pipelines.speech.types import PipelineOutcome, PipelineServices
from speechflow.services.contracts import StageCancelled, StageFailure, StageId
from speechflow.services.deferred import Deferred

logger = logging.getLogger(__name__)

_FOLLOWING = {StageId.A: StageId.B, StageId.B: StageId.C}


class SequentialPipeline:
    """Run A, B, C with ``await`` at each stage boundary."""

    style = "sequential"

    def __init__(self, services: PipelineServices) -> None:
        self._services = services

    async def run(self, request: str) -> PipelineOutcome:
        services = self._services
        run = PipelineRun(request, services.reporter, style=self.style)
        calls: Dict[StageId, Deferred[Any]] = {}
        run.announce()

        try:
            run.enter(StageId.A)
            calls[StageId.A] = services.transcription.defer(request)
            transcript = await calls[StageId.A]
            run.record(StageId.A, transcript)

            run.enter(StageId.B)
            calls[StageId.B] = services.normalization.defer(transcript, request=request)
            text = await calls[StageId.B]
            run.record(StageId.B, text)

            run.enter(StageId.C)
            calls[StageId.C] = services.sentiment.defer(text, request=request)
            sentiment = await calls[StageId.C]
            run.record(StageId.C, sentiment)
        except StageFailure as failure:
            return run.fail(failure)
        except asyncio.CancelledError:
            self._abandon(run, calls)
            logger.info("Pipeline for %s cancelled", request)
            raise

        return run.succeed(text, sentiment)

    @staticmethod
    def _abandon(run: PipelineRun, calls: Dict[StageId, Deferred[Any]]) -> None:
        """Conclude a run whose coroutine was cancelled.

        The awaited stage may already have settled with the coroutine not yet
        resumed. Its result is then recorded as the other styles would have,
        and the run stops before the following stage.
        """

        stage = run.awaiting
        if stage is None:
            return
        call = calls[stage]
        if call.pending:
            run.fail(StageCancelled(stage))
            return
        if call.rejected:
            error = call.error
            run.fail(error if isinstance(error, StageFailure) else StageCancelled(stage))
            return

        run.record(stage, call.result())
        following = _FOLLOWING.get(stage)
        if following is None:
            run.succeed(calls[StageId.B].result(), call.result())
            return
        run.enter(following)
        run.fail(StageCancelled(following))


__all__ = ["SequentialPipeline"]
