"""Deferred values: handles to results that a pending operation will produce.

A :class:`Deferred` settles exactly once, either fulfilled with a value or
rejected with an exception. Handlers registered before settlement run as soon
as it settles; handlers registered afterwards run immediately.

``then`` returns a new Deferred for the handler's result. If the handler
returns another Deferred, the new one waits for it, which is what lets stage
calls be chained one after another. A rejection skips every ``then`` until it
reaches a ``catch``.

Deferreds are awaitable, so ``async`` code can suspend on them directly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generator, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

_PENDING = "pending"
_FULFILLED = "fulfilled"
_REJECTED = "rejected"


class DeferredCancelled(Exception):
    """Rejection used when a Deferred without a canceller is cancelled."""


class DeferredAlreadySettled(RuntimeError):
    """Raised when resolving or rejecting a Deferred that is already settled."""


class Deferred(Generic[T]):
    """A value that will exist once a pending operation completes."""

    def __init__(
        self,
        canceller: Optional[Callable[["Deferred[T]"], None]] = None,
    ) -> None:
        self._state = _PENDING
        self._value: Any = None
        self._error: Optional[BaseException] = None
        self._callbacks: list[tuple[Callable[[Any], Any], Callable[[BaseException], Any]]] = []
        self._canceller = canceller
        self._upstream: Optional[Deferred[Any]] = None
        self._locked = False

    @classmethod
    def resolved(cls, value: T) -> "Deferred[T]":
        deferred: Deferred[T] = cls()
        deferred.resolve(value)
        return deferred

    @classmethod
    def failed(cls, error: BaseException) -> "Deferred[T]":
        deferred: Deferred[T] = cls()
        deferred.reject(error)
        return deferred

    @property
    def pending(self) -> bool:
        return self._state == _PENDING

    @property
    def fulfilled(self) -> bool:
        return self._state == _FULFILLED

    @property
    def rejected(self) -> bool:
        return self._state == _REJECTED

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def result(self) -> T:
        """Return the value, raise the rejection, or fail if still pending."""

        if self._state == _FULFILLED:
            return self._value
        if self._state == _REJECTED:
            raise self._error
        raise RuntimeError("Deferred is still pending")

    def resolve(self, value: Any) -> None:
        """Fulfil with ``value``; a Deferred value is followed until it settles."""

        self._check_open()
        if isinstance(value, Deferred):
            self._follow(value)
            return
        self._settle(_FULFILLED, value)

    def reject(self, error: BaseException) -> None:
        self._check_open()
        self._settle(_REJECTED, error)

    def cancel(self) -> None:
        """Cancel the pending operation this Deferred is waiting on.

        Cancelling a chained Deferred cancels whatever it currently waits on,
        so the rejection carries the upstream cancellation error.
        """

        if not self.pending:
            return
        upstream = self._upstream
        if upstream is not None and upstream.pending:
            upstream.cancel()
        if self.pending and self._canceller is not None:
            self._canceller(self)
        if self.pending:
            self._settle(_REJECTED, DeferredCancelled())

    def add_callbacks(
        self,
        on_success: Callable[[T], Any],
        on_failure: Callable[[BaseException], Any],
    ) -> "Deferred[T]":
        """Observe settlement without creating a new link in the chain.

        An observer that raises while the Deferred settles is logged and the
        remaining callbacks still run. On an already settled Deferred the
        observer runs immediately and its exception reaches the caller.
        """

        if self.pending:
            self._callbacks.append((on_success, on_failure))
        else:
            self._dispatch(on_success, on_failure)
        return self

    def then(self, on_success: Callable[[T], Any]) -> "Deferred[Any]":
        """Run ``on_success`` after this Deferred fulfils; rejections pass through."""

        child: Deferred[Any] = Deferred()
        child._upstream = self

        def _fulfilled(value: T) -> None:
            try:
                outcome = on_success(value)
            except Exception as exc:
                logger.debug("Deferred success handler raised", exc_info=True)
                child._settle(_REJECTED, exc)
                return
            child._adopt(outcome)

        self.add_callbacks(_fulfilled, lambda error: child._settle(_REJECTED, error))
        return child

    def catch(self, on_failure: Callable[[BaseException], Any]) -> "Deferred[Any]":
        """Run ``on_failure`` after this Deferred rejects; values pass through."""

        child: Deferred[Any] = Deferred()
        child._upstream = self

        def _rejected(error: BaseException) -> None:
            try:
                outcome = on_failure(error)
            except Exception as exc:
                logger.debug("Deferred failure handler raised", exc_info=True)
                child._settle(_REJECTED, exc)
                return
            child._adopt(outcome)

        self.add_callbacks(lambda value: child._settle(_FULFILLED, value), _rejected)
        return child

    def __await__(self) -> Generator[Any, None, T]:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _fulfilled(value: T) -> None:
            if not future.done():
                future.set_result(value)

        def _rejected(error: BaseException) -> None:
            if not future.done():
                future.set_exception(error)

        self.add_callbacks(_fulfilled, _rejected)
        try:
            return (yield from future.__await__())
        except asyncio.CancelledError:
            self.cancel()
            raise

    def __repr__(self) -> str:
        if self._state == _FULFILLED:
            return f"<Deferred fulfilled={self._value!r}>"
        if self._state == _REJECTED:
            return f"<Deferred rejected={self._error!r}>"
        return "<Deferred pending>"

    def _check_open(self) -> None:
        if not self.pending or self._locked:
            raise DeferredAlreadySettled(f"{self!r} cannot be settled again")

    def _adopt(self, outcome: Any) -> None:
        if isinstance(outcome, Deferred):
            self._follow(outcome)
        else:
            self._settle(_FULFILLED, outcome)

    def _follow(self, other: "Deferred[Any]") -> None:
        if other is self:
            self._settle(_REJECTED, TypeError("a Deferred cannot wait on itself"))
            return
        self._locked = True
        self._upstream = other
        other.add_callbacks(
            lambda value: self._settle(_FULFILLED, value),
            lambda error: self._settle(_REJECTED, error),
        )

    def _settle(self, state: str, payload: Any) -> None:
        if not self.pending:
            raise DeferredAlreadySettled(f"{self!r} cannot be settled again")
        self._state = state
        if state == _FULFILLED:
            self._value = payload
        else:
            self._error = payload
        self._upstream = None
        self._canceller = None
        self._locked = False
        callbacks, self._callbacks = self._callbacks, []
        for on_success, on_failure in callbacks:
            try:
                self._dispatch(on_success, on_failure)
            except Exception:
                # Later callbacks still run; links created by then/catch never raise.
                logger.exception("Deferred callback raised while settling %r", self)

    def _dispatch(
        self,
        on_success: Callable[[Any], Any],
        on_failure: Callable[[BaseException], Any],
    ) -> None:
        if self._state == _FULFILLED:
            on_success(self._value)
        else:
            on_failure(self._error)


__all__ = ["Deferred", "DeferredAlreadySettled", "DeferredCancelled"]
