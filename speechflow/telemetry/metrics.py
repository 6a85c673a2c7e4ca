"""Prometheus metrics definitions and helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

STAGE_RESULTS = Counter(
    "speechflow_stage_results_total",
    "Stage invocations that reached a terminal result",
    ("stage", "result"),
)

STAGE_DURATION = Histogram(
    "speechflow_stage_duration_units",
    "Simulated stage latency in time-units",
    ("stage",),
    buckets=(
        0.5,
        1.0,
        1.5,
        2.0,
        2.5,
        5.0,
        10.0,
    ),
)

PIPELINE_RESULTS = Counter(
    "speechflow_pipeline_results_total",
    "Pipeline runs by orchestration style and terminal outcome",
    ("style", "result"),
)


def observe_stage(stage: str, result: str, duration: float) -> None:
    """Record metrics for a stage call that completed, failed or was cancelled."""

    safe_stage = stage or "unknown"
    observed_duration = duration if duration >= 0 else 0

    STAGE_RESULTS.labels(stage=safe_stage, result=result).inc()
    STAGE_DURATION.labels(stage=safe_stage).observe(observed_duration)


def observe_pipeline(style: str, success: bool) -> None:
    """Record the terminal outcome of one pipeline run."""

    PIPELINE_RESULTS.labels(
        style=style or "unknown",
        result="success" if success else "failure",
    ).inc()
