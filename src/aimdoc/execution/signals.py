"""
Cancellation for AIM executions.

One `AbortController` is created per top-level execution; its `AbortSignal` is
threaded through every handler and every external call. Cancellation is
cooperative: handlers poll `raise_if_aborted()` at their checkpoints, and
awaits on external collaborators go through `guard()`, which stops waiting as
soon as the signal fires.

Signals are not thread-safe. A host aborting from another thread must schedule
the call on the event loop (`loop.call_soon_threadsafe(controller.abort)`).
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from aimdoc.exceptions import AbortedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AbortSignal:
    """Read side of a cancellation token."""

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Any = None
        self._event: asyncio.Event | None = None
        self._listeners: list[Callable[[Any], None]] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Any:
        return self._reason

    def error(self) -> AbortedError:
        """Exception describing why the signal fired."""
        if isinstance(self._reason, AbortedError):
            return self._reason
        return AbortedError(str(self._reason) if self._reason else "Execution aborted")

    def raise_if_aborted(self) -> None:
        """
        Checkpoint for handlers.

        Raises:
            AbortedError: If the signal has fired
        """
        if self._aborted:
            raise self.error()

    def add_listener(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """
        Register a callback invoked with the abort reason when the signal fires.

        A listener added to an already aborted signal is called immediately.

        Params:
            listener: Callable taking the abort reason

        Returns:
            Function removing the listener again
        """
        if self._aborted:
            listener(self._reason)
            return lambda: None
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def wait(self) -> None:
        """Suspend until the signal fires."""
        if self._aborted:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the signal fires first.

        On abort the pending awaitable is cancelled and the wait is abandoned;
        side effects it already started are not rolled back.

        Params:
            awaitable: Coroutine or future to await

        Returns:
            The awaitable's result

        Raises:
            AbortedError: If the signal fires before the awaitable completes
        """
        if self._aborted:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise self.error()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        if task.done():
            return task.result()
        task.cancel()
        raise self.error()

    def _fire(self, reason: Any) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        if self._event is not None:
            self._event.set()
        for listener in list(self._listeners):
            listener(reason)
        self._listeners.clear()


class AbortController:
    """Write side of a cancellation token."""

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Any = None) -> None:
        """Fire the signal. Later calls are ignored."""
        if not self.signal.aborted:
            logger.debug("Abort requested: %s", reason or "no reason given")
        self.signal._fire(reason)

    def follow(self, other: AbortSignal | None) -> Callable[[], None]:
        """
        Abort this controller whenever `other` fires.

        Params:
            other: Upstream signal, typically the one passed in runtime options

        Returns:
            Function detaching the link
        """
        if other is None:
            return lambda: None
        return other.add_listener(self.abort)
