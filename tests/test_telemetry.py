"""Prometheus counters updated by stages and runs."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from speechflow.pipelines.speech import run_with_style
from speechflow.services import VirtualClock
from speechflow.telemetry import observe_pipeline, observe_stage


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_observe_stage_counts_and_times():
    before = _sample("speechflow_stage_results_total", stage="sentiment", result="success")
    count_before = _sample("speechflow_stage_duration_units_count", stage="sentiment")

    observe_stage("sentiment", "success", 2.0)

    assert _sample("speechflow_stage_results_total", stage="sentiment", result="success") == before + 1
    assert _sample("speechflow_stage_duration_units_count", stage="sentiment") == count_before + 1


def test_observe_stage_clamps_negative_duration():
    sum_before = _sample("speechflow_stage_duration_units_sum", stage="unknown")

    observe_stage("", "failure", -3.0)

    assert _sample("speechflow_stage_duration_units_sum", stage="unknown") == sum_before


def test_observe_pipeline_labels_result():
    before = _sample("speechflow_pipeline_results_total", style="chained", result="failure")

    observe_pipeline("chained", False)

    assert _sample("speechflow_pipeline_results_total", style="chained", result="failure") == before + 1


async def test_run_records_stage_and_pipeline_metrics(services_factory):
    clock = VirtualClock()
    services = services_factory("sentiment", on_clock=clock)
    stage_ok = _sample("speechflow_stage_results_total", stage="normalization", result="success")
    stage_failed = _sample("speechflow_stage_results_total", stage="sentiment", result="failure")
    runs_failed = _sample("speechflow_pipeline_results_total", style="sequential", result="failure")
    normalization_time = _sample("speechflow_stage_duration_units_sum", stage="normalization")

    await clock.drive(run_with_style("sequential", services, "metered"))

    assert _sample("speechflow_stage_results_total", stage="normalization", result="success") == stage_ok + 1
    assert _sample("speechflow_stage_results_total", stage="sentiment", result="failure") == stage_failed + 1
    assert _sample("speechflow_pipeline_results_total", style="sequential", result="failure") == runs_failed + 1
    assert _sample("speechflow_stage_duration_units_sum", stage="normalization") == pytest.approx(normalization_time + 1.5)
