"""Stage A: simulated speech-to-text transcription."""

from __future__ import annotations

import logging
from typing import Optional

from speechflow.config import settings as app_config
from speechflow.services.contracts import AudioRequest, StageId, Transcript
from speechflow.services.progress import ProgressReporter
from speechflow.services.scheduling import Clock
from speechflow.services.stage import StageService

logger = logging.getLogger(__name__)


class TranscriptionService(StageService[AudioRequest, Transcript]):
    """Stub ASR provider that returns a fixed transcript after a delay.

    Arguments left as ``None`` are read from the application settings when the
    service is built. An empty ``failure`` turns failure injection off.
    """

    stage = StageId.A
    display_name = "ASR System"

    def __init__(
        self,
        clock: Clock,
        reporter: ProgressReporter,
        *,
        delay: Optional[float] = None,
        text: Optional[str] = None,
        confidence: Optional[float] = None,
        failure: Optional[str] = None,
    ) -> None:
        current = app_config.settings
        super().__init__(
            clock,
            reporter,
            delay=current.delays.transcription if delay is None else delay,
            failure=current.failures.transcription if failure is None else failure,
        )
        self._text = current.transcription.text if text is None else text
        self._confidence = (
            current.transcription.confidence if confidence is None else confidence
        )

    def process(self, payload: AudioRequest) -> Transcript:
        transcript = Transcript(id=payload, text=self._text, confidence=self._confidence)
        logger.debug("Transcript for %s: %s", payload, transcript.text)
        return transcript

    def request_of(self, payload: AudioRequest) -> Optional[str]:
        return payload

    def started_message(self, payload: AudioRequest) -> str:
        return f"ASR System: Starting transcription for audio {payload}..."

    def completed_message(self, payload: AudioRequest, result: Transcript) -> str:
        return f"ASR System: Raw transcription complete for {payload}."

    def failed_message(self, payload: AudioRequest, message: str) -> str:
        return f"ASR System: Transcription failed for {payload}: {message}"


__all__ = ["TranscriptionService"]
