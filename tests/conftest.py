"""Shared fixtures: a simulated clock and stage services wired onto it."""

from __future__ import annotations

from typing import Callable, Optional

import pytest

from speechflow.config.dependencies import build_pipeline_services
from speechflow.config.settings import (
    DelayConfig,
    FailureConfig,
    Settings,
    TranscriptionConfig,
)
from speechflow.pipelines.speech import PipelineServices
from speechflow.services import VirtualClock

RAW_TEXT = "hello world this is a test it cost five dollars and was great"
NORMALIZED_TEXT = "hello world this is a test it cost 5 dollars and was great"


def make_settings(failing: Optional[str] = None, message: str = "simulated outage") -> Settings:
    """Default delays and transcript, optionally failing one stage by service name."""

    failures = {failing: message} if failing else {}
    return Settings(
        delays=DelayConfig(transcription=2.0, normalization=1.5, sentiment=2.0, time_unit=1.0),
        transcription=TranscriptionConfig(text=RAW_TEXT, confidence=0.93),
        failures=FailureConfig(
            transcription=failures.get("transcription"),
            normalization=failures.get("normalization"),
            sentiment=failures.get("sentiment"),
        ),
        preview_length=30,
    )


ServicesFactory = Callable[..., PipelineServices]


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def services_factory(clock: VirtualClock) -> ServicesFactory:
    """Build services on the shared clock, or on a clock passed explicitly."""

    def _build(
        failing: Optional[str] = None,
        *,
        message: str = "simulated outage",
        on_clock: Optional[VirtualClock] = None,
    ) -> PipelineServices:
        return build_pipeline_services(
            on_clock or clock,
            config=make_settings(failing, message),
        )

    return _build


@pytest.fixture
def services(services_factory: ServicesFactory) -> PipelineServices:
    return services_factory()
