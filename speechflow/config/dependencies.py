from typing import Optional

from speechflow.config import settings as app_config
from speechflow.config.settings import Settings
from speechflow.pipelines.speech.types import PipelineServices
from speechflow.services.normalizer import NormalizationService
from speechflow.services.progress import ProgressReporter
from speechflow.services.scheduling import Clock, LoopClock
from speechflow.services.sentiment import SentimentService
from speechflow.services.transcribe import TranscriptionService


def get_clock(config: Optional[Settings] = None) -> LoopClock:
    """Event-loop clock scaled by the configured time-unit"""
    config = config or app_config.settings
    return LoopClock(time_unit=config.delays.time_unit)


def build_pipeline_services(
    clock: Optional[Clock] = None,
    *,
    config: Optional[Settings] = None,
    reporter: Optional[ProgressReporter] = None,
) -> PipelineServices:
    """Wire the three stages onto one clock and one progress reporter"""

    config = config or app_config.settings
    clock = clock or get_clock(config)
    reporter = reporter or ProgressReporter(
        clock,
        preview_length=config.preview_length,
        max_events=config.progress_history,
    )

    return PipelineServices(
        transcription=TranscriptionService(
            clock,
            reporter,
            delay=config.delays.transcription,
            text=config.transcription.text,
            confidence=config.transcription.confidence,
            failure=config.failures.transcription or "",
        ),
        normalization=NormalizationService(
            clock,
            reporter,
            delay=config.delays.normalization,
            failure=config.failures.normalization or "",
        ),
        sentiment=SentimentService(
            clock,
            reporter,
            delay=config.delays.sentiment,
            failure=config.failures.sentiment or "",
        ),
        reporter=reporter,
    )
