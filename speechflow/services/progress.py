"""Human-readable progress lines emitted by stages and orchestrators.

Ordering of these lines is the observable behaviour of a pipeline run, so the
reporter both logs each line and keeps an ordered record of it.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Iterable, Optional

from speechflow.services.scheduling import Clock

progress_logger = logging.getLogger("speechflow.progress")


class ProgressKind(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    STEP = "step"


@dataclass(frozen=True)
class ProgressEvent:
    """One progress line, stamped with the clock time it was emitted at."""

    at: float
    source: str
    kind: ProgressKind
    message: str
    request: Optional[str] = None


def preview(text: str, length: int = 30) -> str:
    """Shorten ``text`` the way the progress lines quote stage input."""

    return f"{text[:length]}..."


class ProgressReporter:
    """Log progress lines and remember them in emission order.

    With ``max_events`` set only the most recent events are kept; every line
    is still logged.
    """

    def __init__(
        self,
        clock: Clock,
        *,
        logger: Optional[logging.Logger] = None,
        preview_length: int = 30,
        max_events: Optional[int] = None,
    ) -> None:
        self._clock = clock
        self._logger = logger or progress_logger
        self._events: Deque[ProgressEvent] = deque(maxlen=max_events)
        self.preview_length = preview_length

    @property
    def events(self) -> tuple[ProgressEvent, ...]:
        return tuple(self._events)

    @property
    def max_events(self) -> Optional[int]:
        return self._events.maxlen

    def emit(
        self,
        source: str,
        kind: ProgressKind,
        message: str,
        *,
        request: Optional[str] = None,
    ) -> ProgressEvent:
        event = ProgressEvent(
            at=self._clock.time(),
            source=source,
            kind=kind,
            message=message,
            request=request,
        )
        self._events.append(event)
        level = logging.ERROR if kind is ProgressKind.FAILED else logging.INFO
        self._logger.log(level, message)
        return event

    def preview(self, text: str) -> str:
        return preview(text, self.preview_length)

    def messages(self, request: Optional[str] = None) -> list[str]:
        """Messages in emission order, optionally limited to one request."""

        return [event.message for event in self._filter(request)]

    def for_request(self, request: str) -> list[ProgressEvent]:
        return list(self._filter(request))

    def clear(self) -> None:
        self._events.clear()

    def _filter(self, request: Optional[str]) -> Iterable[ProgressEvent]:
        if request is None:
            return iter(self._events)
        return (event for event in self._events if event.request == request)


__all__ = ["ProgressEvent", "ProgressKind", "ProgressReporter", "preview"]
