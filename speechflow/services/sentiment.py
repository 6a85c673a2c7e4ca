"""Stage C: sentiment classification stub.

This is not a classifier. It always answers ``neutral`` once its delay has
elapsed, whatever the text says.
"""

from __future__ import annotations

from typing import Optional

from speechflow.config import settings as app_config
from speechflow.services.contracts import NormalizedText, SentimentLabel, StageId
from speechflow.services.progress import ProgressReporter
from speechflow.services.scheduling import Clock
from speechflow.services.stage import StageService


class SentimentService(StageService[NormalizedText, SentimentLabel]):
    stage = StageId.C
    display_name = "Sentiment Analysis"

    def __init__(
        self,
        clock: Clock,
        reporter: ProgressReporter,
        *,
        delay: Optional[float] = None,
        label: SentimentLabel = SentimentLabel.NEUTRAL,
        failure: Optional[str] = None,
    ) -> None:
        current = app_config.settings
        super().__init__(
            clock,
            reporter,
            delay=current.delays.sentiment if delay is None else delay,
            failure=current.failures.sentiment if failure is None else failure,
        )
        self._label = label

    def process(self, payload: NormalizedText) -> SentimentLabel:
        return self._label

    def started_message(self, payload: NormalizedText) -> str:
        return f'Sentiment Analysis: Analyzing: "{self._reporter.preview(payload)}"'

    def completed_message(self, payload: NormalizedText, result: SentimentLabel) -> str:
        return "Sentiment Analysis: Analysis complete."

    def failed_message(self, payload: NormalizedText, message: str) -> str:
        return f"Sentiment Analysis: Analysis failed: {message}"


__all__ = ["SentimentService"]
