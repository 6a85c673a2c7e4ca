"""Environment-driven configuration and service wiring."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from speechflow.config import settings as app_config
from speechflow.config.dependencies import build_pipeline_services, get_clock
from speechflow.config.settings import DelayConfig, Settings, TranscriptionConfig
from speechflow.services import (
    ProgressKind,
    ProgressReporter,
    SentimentService,
    TranscriptionService,
    VirtualClock,
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep a developer's .env and shell exports out of these tests."""

    monkeypatch.chdir(tmp_path)
    for name in (
        "DELAY_TRANSCRIPTION",
        "DELAY_NORMALIZATION",
        "DELAY_SENTIMENT",
        "DELAY_TIME_UNIT",
        "TRANSCRIPTION_TEXT",
        "TRANSCRIPTION_CONFIDENCE",
        "FAIL_TRANSCRIPTION",
        "FAIL_NORMALIZATION",
        "FAIL_SENTIMENT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Settings()

    assert config.delays.transcription == 2.0
    assert config.delays.normalization == 1.5
    assert config.delays.sentiment == 2.0
    assert config.delays.total == 5.5
    assert config.transcription.text == (
        "hello world this is a test it cost five dollars and was great"
    )
    assert config.failures.transcription is None
    assert config.preview_length == 30
    assert config.progress_history == 10_000


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DELAY_TRANSCRIPTION", "0.5")
    monkeypatch.setenv("DELAY_TIME_UNIT", "0.01")
    monkeypatch.setenv("FAIL_NORMALIZATION", "Network timeout")
    monkeypatch.setenv("TRANSCRIPTION_TEXT", "five five five")

    config = Settings()

    assert config.delays.transcription == 0.5
    assert config.delays.time_unit == 0.01
    assert config.failures.normalization == "Network timeout"
    assert config.transcription.text == "five five five"


def test_dotenv_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("DELAY_SENTIMENT=4\nFAIL_SENTIMENT=model offline\n")

    config = Settings()

    assert config.delays.sentiment == 4.0
    assert config.failures.sentiment == "model offline"


@pytest.mark.parametrize("confidence", [-0.1, 1.01])
def test_confidence_is_bounded(confidence):
    with pytest.raises(ValidationError):
        TranscriptionConfig(confidence=confidence)


@pytest.mark.parametrize("field", ["transcription", "normalization", "sentiment"])
def test_negative_delays_are_invalid(field):
    with pytest.raises(ValidationError):
        DelayConfig(**{field: -1})


def test_time_unit_must_be_positive():
    with pytest.raises(ValidationError):
        DelayConfig(time_unit=0)


def test_get_clock_uses_time_unit():
    clock = get_clock(Settings(delays=DelayConfig(time_unit=0.25)))

    assert clock.time_unit == 0.25


def test_build_pipeline_services_applies_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FAIL_TRANSCRIPTION", "mic unplugged")
    config = Settings(delays=DelayConfig(normalization=0.75))
    clock = VirtualClock()
    reporter = ProgressReporter(clock, preview_length=5)

    services = build_pipeline_services(clock, config=config, reporter=reporter)

    assert services.reporter is reporter
    assert services.normalization.delay == 0.75
    assert services.transcription.failure == "mic unplugged"
    assert services.sentiment.failure is None


def test_empty_failure_message_means_no_failure(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FAIL_SENTIMENT", "")

    services = build_pipeline_services(VirtualClock(), config=Settings())

    assert services.sentiment.failure is None


def test_services_read_settings_when_built(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FAIL_SENTIMENT", "model offline")
    monkeypatch.setattr(
        app_config,
        "settings",
        Settings(delays=DelayConfig(transcription=0.5), progress_history=3),
    )
    clock = VirtualClock()
    reporter = ProgressReporter(clock)

    assert TranscriptionService(clock, reporter).delay == 0.5
    assert SentimentService(clock, reporter).failure == "model offline"
    assert SentimentService(clock, reporter, failure="").failure is None

    services = build_pipeline_services(clock)
    assert services.transcription.delay == 0.5
    assert services.sentiment.failure == "model offline"
    assert services.reporter.max_events == 3


def test_explicit_config_ignores_application_failures(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FAIL_NORMALIZATION", "down")
    monkeypatch.setattr(app_config, "settings", Settings())
    monkeypatch.delenv("FAIL_NORMALIZATION")

    services = build_pipeline_services(VirtualClock(), config=Settings())

    assert services.normalization.failure is None


def test_progress_history_is_bounded(caplog: pytest.LogCaptureFixture):
    clock = VirtualClock()
    reporter = ProgressReporter(clock, max_events=2)

    with caplog.at_level(logging.INFO, logger="speechflow.progress"):
        for index in range(3):
            reporter.emit("pipeline", ProgressKind.STEP, f"line {index}")

    assert reporter.messages() == ["line 1", "line 2"]
    assert [record.getMessage() for record in caplog.records] == ["line 0", "line 1", "line 2"]
