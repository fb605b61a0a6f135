"""
Execution machinery: state store, expression resolution, cancellation and the
tree walker that drives tag handlers.
"""

from aimdoc.execution.context import AdapterContext, RuntimeContext
from aimdoc.execution.events import EventEmitter
from aimdoc.execution.resolution import Snapshot, resolve_path, resolve_value
from aimdoc.execution.retries import with_retries
from aimdoc.execution.signals import AbortController, AbortSignal
from aimdoc.execution.state import ExecutionState, Frame, StateChange, TextEntry
from aimdoc.execution.walker import walk, walk_document

__all__ = [
    "AdapterContext",
    "RuntimeContext",
    "EventEmitter",
    "Snapshot",
    "resolve_path",
    "resolve_value",
    "with_retries",
    "AbortController",
    "AbortSignal",
    "ExecutionState",
    "Frame",
    "StateChange",
    "TextEntry",
    "walk",
    "walk_document",
]
