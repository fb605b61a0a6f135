"""Bounded retry with exponential backoff for external calls."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, TypeVar

from aimdoc.exceptions import AIMError, ExternalCallError
from aimdoc.execution.signals import AbortSignal

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base: float, cap: float = 30.0) -> float:
    """Delay before retry number `attempt` (1-based)."""
    return min(cap, base * (2 ** (attempt - 1)))


async def with_retries(
    call: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    signal: AbortSignal,
    operation: str,
    backoff: float = 0.5,
) -> T:
    """
    Run `call` until it succeeds or `attempts` is exhausted.

    Only external failures are retried: `ExternalCallError` and exceptions
    outside the AIM hierarchy. Aborts and other AIM errors propagate at once.
    The backoff sleep is abandoned as soon as the signal fires.

    Params:
        call: Zero-argument coroutine factory
        attempts: Maximum number of attempts (at least one is always made)
        signal: Execution cancellation signal
        operation: Name used in log records and in the final error
        backoff: Base delay in seconds, doubled after every failed attempt

    Returns:
        Result of the first successful attempt

    Raises:
        AbortedError: If the signal fires
        ExternalCallError: After the last failed attempt
    """
    attempts = max(1, attempts)
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        signal.raise_if_aborted()
        try:
            return await call()
        except AIMError as exc:
            if not isinstance(exc, ExternalCallError):
                raise
            last_error = exc
            logger.warning("%s failed (attempt %d/%d): %s", operation, attempt, attempts, exc)
        except Exception as exc:
            last_error = exc
            logger.warning("%s failed (attempt %d/%d): %s", operation, attempt, attempts, exc)
        if attempt < attempts and backoff > 0:
            await signal.guard(asyncio.sleep(backoff_delay(attempt, backoff)))
    raise ExternalCallError(
        operation, f"failed after {attempts} attempt(s): {last_error}"
    ) from last_error


async def maybe_await(value: Any) -> Any:
    """Await `value` when it is awaitable; return it unchanged otherwise."""
    if inspect.isawaitable(value):
        return await value
    return value
