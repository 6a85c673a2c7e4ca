"""Stage B: number-word normalization of raw transcripts.

Spoken number words are rewritten as digits. Only the standalone word
``five`` is handled, matched case-insensitively on ASCII word boundaries,
so a letter such as ``é`` next to it counts as a boundary. Every other
character of the transcript is left untouched.
"""

from __future__ import annotations

import re
from typing import Optional

from speechflow.config import settings as app_config
from speechflow.services.contracts import NormalizedText, StageId, Transcript
from speechflow.services.progress import ProgressReporter
from speechflow.services.scheduling import Clock
from speechflow.services.stage import StageService

_NUMBER_WORDS = {
    "five": "5",
}
_NUMBER_PATTERN = re.compile(
    r"\b(" + "|".join(map(re.escape, _NUMBER_WORDS)) + r")\b",
    re.IGNORECASE | re.ASCII,
)


def normalize_numbers(text: str) -> NormalizedText:
    """Replace spoken number words with digits. Idempotent."""

    return _NUMBER_PATTERN.sub(lambda match: _NUMBER_WORDS[match.group(0).lower()], text)


class NormalizationService(StageService[Transcript, NormalizedText]):
    """Post-processor that consumes the transcription stage's output as-is."""

    stage = StageId.B
    display_name = "Postprocessor"

    def __init__(
        self,
        clock: Clock,
        reporter: ProgressReporter,
        *,
        delay: Optional[float] = None,
        failure: Optional[str] = None,
    ) -> None:
        current = app_config.settings
        super().__init__(
            clock,
            reporter,
            delay=current.delays.normalization if delay is None else delay,
            failure=current.failures.normalization if failure is None else failure,
        )

    def process(self, payload: Transcript) -> NormalizedText:
        return normalize_numbers(payload.text)

    def request_of(self, payload: Transcript) -> Optional[str]:
        return payload.id

    def started_message(self, payload: Transcript) -> str:
        return f'Postprocessor: Normalizing text: "{self._reporter.preview(payload.text)}"'

    def completed_message(self, payload: Transcript, result: NormalizedText) -> str:
        return "Postprocessor: Text normalization complete."

    def failed_message(self, payload: Transcript, message: str) -> str:
        return f"Postprocessor: Normalization failed: {message}"


__all__ = ["NormalizationService", "normalize_numbers"]
