"""High-level orchestration map for the speech pipeline.

The same three stages are orchestrated in three interchangeable styles:

1. ``callbacks`` – continuation passing, see ``callbacks.CallbackPipeline``.
2. ``chained`` – Deferred chaining, see ``chained.ChainedPipeline``.
3. ``sequential`` – ``async``/``await``, see ``sequential.SequentialPipeline``.

Every style yields the same ``PipelineOutcome`` and the same progress lines for
the same stage configuration. ``run_with_style`` gives all of them one
awaitable entrypoint, and ``run_concurrently`` starts several runs at once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from speechflow.pipelines.speech.callbacks import CallbackPipeline
from speechflow.pipelines.speech.chained import ChainedPipeline
from speechflow.pipelines.speech.sequential import SequentialPipeline
from speechflow.pipelines.speech.types import PipelineOutcome, PipelineServices


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the speech pipeline."""

    order: int
    name: str
    module: str
    summary: str


class SpeechPipeline:
    """Utility wrapper for documenting the stage order."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            "Transcription",
            "speechflow.services.transcribe",
            "Turn an audio identifier into a transcript with a confidence score.",
        ),
        PipelineStage(
            2,
            "Normalization",
            "speechflow.services.normalizer",
            "Rewrite spoken number words in the transcript text as digits.",
        ),
        PipelineStage(
            3,
            "Sentiment",
            "speechflow.services.sentiment",
            "Label the normalized text; the stub always answers neutral.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)


PIPELINE_STYLES: Mapping[str, type] = {
    CallbackPipeline.style: CallbackPipeline,
    ChainedPipeline.style: ChainedPipeline,
    SequentialPipeline.style: SequentialPipeline,
}


async def run_with_style(
    style: str,
    services: PipelineServices,
    request: str,
) -> PipelineOutcome:
    """Run one pipeline in the named style and wait for its outcome."""

    try:
        pipeline_cls = PIPELINE_STYLES[style]
    except KeyError:
        raise ValueError(
            f"unknown pipeline style {style!r}; expected one of {sorted(PIPELINE_STYLES)}"
        ) from None

    pipeline = pipeline_cls(services)
    if isinstance(pipeline, CallbackPipeline):
        return await pipeline.defer(request)
    return await pipeline.run(request)


async def run_concurrently(
    style: str,
    services: PipelineServices,
    requests: Iterable[str],
) -> list[PipelineOutcome]:
    """Start one run per request at once; outcomes come back in request order.

    Progress lines of different runs interleave according to their delays.
    """

    return list(
        await asyncio.gather(
            *(run_with_style(style, services, request) for request in requests)
        )
    )


__all__ = [
    "PIPELINE_STYLES",
    "PipelineStage",
    "SpeechPipeline",
    "run_concurrently",
    "run_with_style",
]
