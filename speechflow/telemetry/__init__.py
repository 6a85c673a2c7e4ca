"""Telemetry helpers and metrics."""

from .metrics import (
    PIPELINE_RESULTS,
    STAGE_DURATION,
    STAGE_RESULTS,
    observe_pipeline,
    observe_stage,
)

__all__ = [
    "PIPELINE_RESULTS",
    "STAGE_DURATION",
    "STAGE_RESULTS",
    "observe_pipeline",
    "observe_stage",
]
