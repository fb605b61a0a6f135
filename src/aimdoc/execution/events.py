"""Dispatch of lifecycle callbacks configured in `RuntimeOptions`."""

import inspect
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aimdoc.config import RuntimeOptions

logger = logging.getLogger(__name__)

EVENTS = ("start", "step", "data", "output", "log", "success", "error", "abort", "finish")


class EventEmitter:
    """
    Invokes `on_<event>` callbacks and mirrors every event to the logger.

    Callbacks may be plain functions or coroutine functions. A callback that
    raises is logged and otherwise ignored; it never fails the execution.
    """

    def __init__(self, options: "RuntimeOptions"):
        self.options = options

    async def emit(self, event: str, payload: Any = None) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event '{event}'. Known events: {', '.join(EVENTS)}")
        if event in ("error", "abort"):
            logger.info("%s: %s", event, payload)
        else:
            logger.debug("%s: %s", event, payload)

        callback = getattr(self.options, f"on_{event}", None)
        if callback is None:
            return
        try:
            result = callback(payload) if payload is not None else callback()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("on_%s callback failed", event)
