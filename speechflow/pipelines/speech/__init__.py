"""Speech pipeline package.

Modules are organised around the three orchestration styles:

1. `callbacks` – stages chained by completion handlers.
2. `chained` – stages chained as Deferred values with one error sink.
3. `sequential` – stages awaited from one coroutine.
4. `flow` – stage map plus helpers that run any style.

`state` holds the per-run state machine the three styles share and `types`
the outcome container.
"""

from .callbacks import CallbackPipeline, CallbackRun
from .chained import ChainedPipeline
from .flow import (
    PIPELINE_STYLES,
    PipelineStage,
    SpeechPipeline,
    run_concurrently,
    run_with_style,
)
from .sequential import SequentialPipeline
from .state import InvalidTransition, PipelineRun, PipelineState
from .types import PipelineOutcome, PipelineServices

__all__ = [
    "CallbackPipeline",
    "CallbackRun",
    "ChainedPipeline",
    "InvalidTransition",
    "PIPELINE_STYLES",
    "PipelineOutcome",
    "PipelineRun",
    "PipelineServices",
    "PipelineStage",
    "PipelineState",
    "SequentialPipeline",
    "SpeechPipeline",
    "run_concurrently",
    "run_with_style",
]
