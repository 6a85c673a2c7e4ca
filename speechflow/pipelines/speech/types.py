"""Typed containers shared across the speech pipeline orchestrators.

These live in their own module so the three orchestration styles and the
`flow` helpers can import them without circular dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from speechflow.services.contracts import (
    NormalizedText,
    SentimentLabel,
    StageFailure,
    StageId,
)
from speechflow.services.normalizer import NormalizationService
from speechflow.services.progress import ProgressReporter
from speechflow.services.sentiment import SentimentService
from speechflow.services.transcribe import TranscriptionService


@dataclass(frozen=True)
class PipelineOutcome:
    """Terminal success or failure of one pipeline run."""

    request: str
    success: bool
    text: Optional[NormalizedText] = None
    sentiment: Optional[SentimentLabel] = None
    failed_stage: Optional[StageId] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(
        cls,
        request: str,
        text: NormalizedText,
        sentiment: SentimentLabel,
    ) -> "PipelineOutcome":
        return cls(request=request, success=True, text=text, sentiment=sentiment)

    @classmethod
    def failed(cls, request: str, failure: StageFailure) -> "PipelineOutcome":
        return cls(
            request=request,
            success=False,
            failed_stage=failure.stage,
            error=failure.message,
        )

    @property
    def provenance(self) -> Optional[str]:
        """Label of the failing stage, e.g. ``"Stage A"``."""
        return self.failed_stage.label if self.failed_stage is not None else None


@dataclass(frozen=True)
class PipelineServices:
    """The three stages plus the reporter their progress lines go to."""

    transcription: TranscriptionService
    normalization: NormalizationService
    sentiment: SentimentService
    reporter: ProgressReporter


__all__ = ["PipelineOutcome", "PipelineServices"]
