"""Common machinery for simulated pipeline stages.

Every stage has one input, one output and a fixed latency. A stage exposes two
entrypoints over the same behaviour:

* ``start(payload, on_done, on_error)`` takes completion handlers and returns
  a cancellable :class:`StageCall`.
* ``defer(payload)`` returns a :class:`~speechflow.services.deferred.Deferred`
  that settles with the stage result. Deferreds are awaitable.

Stages announce themselves when invoked, wait on the injected clock, and then
announce completion or failure before handing the result on.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Generic, Optional, TypeVar

from speechflow.services.contracts import StageCancelled, StageFailure, StageId
from speechflow.services.deferred import Deferred
from speechflow.services.progress import ProgressKind, ProgressReporter
from speechflow.services.scheduling import Clock, TimerHandle
from speechflow.telemetry import observe_stage

logger = logging.getLogger(__name__)

In = TypeVar("In")
Out = TypeVar("Out")


class StageCall:
    """Handle on one pending stage invocation."""

    def __init__(self, stage: StageId, on_cancel: Callable[[], None]) -> None:
        self.stage = stage
        self._on_cancel = on_cancel
        self._timer: Optional[TimerHandle] = None
        self._finished = False
        self._cancelled = False

    @property
    def done(self) -> bool:
        return self._finished or self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Stop the call before its handlers fire. Returns False if too late."""

        if self.done:
            return False
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
        self._on_cancel()
        return True

    def _attach(self, timer: TimerHandle) -> None:
        self._timer = timer

    def _finish(self) -> None:
        self._finished = True


class StageService(Generic[In, Out]):
    """Base class for the transcription, normalization and sentiment stubs."""

    stage: ClassVar[StageId]
    display_name: ClassVar[str]

    def __init__(
        self,
        clock: Clock,
        reporter: ProgressReporter,
        *,
        delay: float,
        failure: Optional[str] = None,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self._clock = clock
        self._reporter = reporter
        self.delay = delay
        self.failure = failure or None
        self.invocations = 0

    # -- stage-specific hooks ------------------------------------------------

    def process(self, payload: In) -> Out:
        raise NotImplementedError

    def request_of(self, payload: In) -> Optional[str]:
        return None

    def started_message(self, payload: In) -> str:
        raise NotImplementedError

    def completed_message(self, payload: In, result: Out) -> str:
        raise NotImplementedError

    def failed_message(self, payload: In, message: str) -> str:
        return f"{self.display_name}: {self.stage.label} failed: {message}"

    # -- entrypoints ---------------------------------------------------------

    def start(
        self,
        payload: In,
        on_done: Callable[[Out], Any],
        on_error: Optional[Callable[[StageFailure], Any]] = None,
        *,
        request: Optional[str] = None,
    ) -> StageCall:
        """Invoke the stage; ``on_done`` or ``on_error`` fires after the delay.

        Without ``on_error`` a failure is logged and goes no further.
        """

        request = request if request is not None else self.request_of(payload)
        started_at = self._clock.time()
        self.invocations += 1

        def _cancelled() -> None:
            self._reporter.emit(
                self.stage.service,
                ProgressKind.FAILED,
                f"{self.display_name}: {self.stage.label} cancelled.",
                request=request,
            )
            observe_stage(self.stage.service, "cancelled", self._clock.time() - started_at)

        call = StageCall(self.stage, _cancelled)
        self._reporter.emit(
            self.stage.service,
            ProgressKind.STARTED,
            self.started_message(payload),
            request=request,
        )
        call._attach(
            self._clock.call_later(
                self.delay,
                self._complete,
                call,
                payload,
                request,
                started_at,
                on_done,
                on_error,
            )
        )
        return call

    def defer(self, payload: In, *, request: Optional[str] = None) -> Deferred[Out]:
        """Invoke the stage and return a Deferred for its result."""

        call: Optional[StageCall] = None

        def _cancel(deferred: Deferred[Out]) -> None:
            if call is not None:
                call.cancel()
            deferred.reject(StageCancelled(self.stage))

        deferred: Deferred[Out] = Deferred(canceller=_cancel)
        call = self.start(payload, deferred.resolve, deferred.reject, request=request)
        return deferred

    # -- internals -----------------------------------------------------------

    def _complete(
        self,
        call: StageCall,
        payload: In,
        request: Optional[str],
        started_at: float,
        on_done: Callable[[Out], Any],
        on_error: Optional[Callable[[StageFailure], Any]],
    ) -> None:
        if call.cancelled:
            return
        call._finish()
        duration = self._clock.time() - started_at

        try:
            if self.failure:
                raise StageFailure(self.stage, self.failure)
            result = self.process(payload)
        except StageFailure as exc:
            self._reporter.emit(
                self.stage.service,
                ProgressKind.FAILED,
                self.failed_message(payload, exc.message),
                request=request,
            )
            observe_stage(self.stage.service, "failure", duration)
            if on_error is None:
                logger.warning("%s failed with no error handler: %s", self.stage.label, exc)
                return
            on_error(exc)
            return

        self._reporter.emit(
            self.stage.service,
            ProgressKind.COMPLETED,
            self.completed_message(payload, result),
            request=request,
        )
        observe_stage(self.stage.service, "success", duration)
        on_done(result)


__all__ = ["StageCall", "StageService"]
