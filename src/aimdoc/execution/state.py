"""
Per-execution mutable store.

An `ExecutionState` is created for every top-level execution and threaded
explicitly through the walker and all handlers. It owns the variable stack, the
text registry, secrets and the adapters resolved at configuration time.

All mutation goes through `push_stack`, `pop_stack`, `add_to_text_registry`
and `clear_text_registry`. There is no lock: branches running concurrently
under `parallel` each hold their own scope token, and every operation touches
only entries of the scope it is given.
"""

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterable, Mapping

from aimdoc.core.types import GLOBAL_SCOPE, ScopeChain, Variables
from aimdoc.exceptions import AdapterNotFoundError

if TYPE_CHECKING:
    from aimdoc.config import Adapter, Plugin, RuntimeOptions
    from aimdoc.execution.signals import AbortSignal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """Named group of variables pushed by a handler into one scope."""

    id: str
    scope: str
    variables: Variables = field(default_factory=dict)


@dataclass(frozen=True)
class TextEntry:
    text: str
    scope: str


@dataclass(frozen=True)
class StateChange:
    """One entry of the append-only mutation log."""

    action: str
    scope: str
    stack_depth: int
    registry_size: int
    timestamp: float


class ExecutionState:
    """
    Variable stack and text registry for one execution.

    Params:
        options: Runtime options of the execution
        signal: Cancellation signal shared by every handler of the execution
        adapters: Adapters by type, as registered at configuration time
        plugins: Plugins by name
    """

    def __init__(
        self,
        options: "RuntimeOptions",
        signal: "AbortSignal",
        adapters: Mapping[str, "Adapter"] | None = None,
        plugins: Mapping[str, "Plugin"] | None = None,
    ):
        self.options = options
        self.signal = signal
        self.adapters: dict[str, "Adapter"] = dict(adapters or {})
        self.plugins: dict[str, "Plugin"] = dict(plugins or {})
        self.secrets: dict[str, str] = dict(options.env)
        self.stack: list[Frame] = []
        self.text_registry: list[TextEntry] = []
        self.history: list[StateChange] = []
        self._scope_counter = itertools.count(1)

    def new_scope(self) -> str:
        """Allocate a scope token unique within this execution."""
        return f"scope-{next(self._scope_counter)}"

    # Variable stack

    def push_stack(self, frame: Frame) -> None:
        """Push a frame; repeated ids shadow earlier frames rather than replace them."""
        self.stack.append(frame)
        logger.debug("push %s into %s", frame.id, frame.scope)
        self._record("push", frame.scope)

    def pop_stack(self, scope: str) -> list[Frame]:
        """
        Remove every frame pushed under `scope`.

        Params:
            scope: Scope token being released

        Returns:
            The removed frames, oldest first
        """
        removed = [frame for frame in self.stack if frame.scope == scope]
        if removed:
            self.stack = [frame for frame in self.stack if frame.scope != scope]
            logger.debug("pop %d frame(s) from %s", len(removed), scope)
        self._record("pop", scope)
        return removed

    def get_block_result_by_id(self, id: str, chain: ScopeChain | None = None) -> Frame | None:
        """
        Find the most recent frame with the given id.

        Params:
            id: Frame id to look up
            chain: Scope chain of the requester; when given, only frames pushed
                into one of these scopes are visible

        Returns:
            The matching frame, or None
        """
        for frame in reversed(self.stack):
            if frame.id != id:
                continue
            if chain is None or frame.scope in chain:
                return frame
        return None

    def snapshot(self, chain: ScopeChain | None = None) -> Variables:
        """
        Variables visible from a scope chain.

        `options.variables` form the base layer; frames visible from the chain
        are layered on top by id, the most recent frame per id winning.
        """
        variables: Variables = dict(self.options.variables)
        for frame in self.stack:
            if chain is None or frame.scope in chain:
                variables[frame.id] = frame.variables
        return variables

    # Text registry

    def add_to_text_registry(self, text: str, scope: str = GLOBAL_SCOPE) -> None:
        self.text_registry.append(TextEntry(text, scope))
        self._record("add_text", scope)

    def clear_text_registry(self, scope: str) -> None:
        self.text_registry = [entry for entry in self.text_registry if entry.scope != scope]
        self._record("clear_text", scope)

    def get_scoped_text(self, scope: str) -> list[str]:
        return [entry.text for entry in self.text_registry if entry.scope == scope]

    def get_text(self, chain: Iterable[str]) -> list[str]:
        """Registry entries of every scope in `chain`, in insertion order."""
        scopes = set(chain)
        return [entry.text for entry in self.text_registry if entry.scope in scopes]

    # Secrets and adapters

    def get_secret(self, name: str) -> str | None:
        return self.secrets.get(name)

    def set_secret(self, name: str, value: str) -> None:
        self.secrets[name] = value

    def get_adapter(self, adapter_type: str) -> "Adapter | None":
        return self.adapters.get(adapter_type)

    def get_adapter_handler(self, adapter_type: str, operation: str) -> Callable[..., Any]:
        """
        Look up one operation of a registered adapter.

        Raises:
            AdapterNotFoundError: If the adapter or the operation is not registered
        """
        adapter = self.adapters.get(adapter_type)
        if adapter is None:
            raise AdapterNotFoundError(adapter_type)
        handler = adapter.handlers.get(operation)
        if handler is None:
            raise AdapterNotFoundError(adapter_type, operation)
        return handler

    def _record(self, action: str, scope: str) -> None:
        self.history.append(
            StateChange(
                action=action,
                scope=scope,
                stack_depth=len(self.stack),
                registry_size=len(self.text_registry),
                timestamp=time.monotonic(),
            )
        )
