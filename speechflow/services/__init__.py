"""Stage services and the scheduling primitives they run on."""

from .contracts import (
    AudioRequest,
    NormalizedText,
    SentimentLabel,
    StageCancelled,
    StageFailure,
    StageId,
    Transcript,
)
from .deferred import Deferred, DeferredAlreadySettled, DeferredCancelled
from .normalizer import NormalizationService, normalize_numbers
from .progress import ProgressEvent, ProgressKind, ProgressReporter
from .scheduling import Clock, LoopClock, VirtualClock
from .sentiment import SentimentService
from .stage import StageCall, StageService
from .transcribe import TranscriptionService

__all__ = [
    "AudioRequest",
    "Clock",
    "Deferred",
    "DeferredAlreadySettled",
    "DeferredCancelled",
    "LoopClock",
    "NormalizationService",
    "NormalizedText",
    "ProgressEvent",
    "ProgressKind",
    "ProgressReporter",
    "SentimentLabel",
    "SentimentService",
    "StageCall",
    "StageCancelled",
    "StageFailure",
    "StageId",
    "StageService",
    "Transcript",
    "TranscriptionService",
    "VirtualClock",
    "normalize_numbers",
]
