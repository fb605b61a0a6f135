"""
Explicit per-branch view on an execution.

Every handler receives a `RuntimeContext`: the shared `ExecutionState`, the
engine configuration and the chain of scope tokens the handler runs in. Handlers
never reach for global state; anything they read or write goes through the
context, which pins it to the right scope.
"""

from contextlib import aclosing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping

from aimdoc.core.nodes import Node
from aimdoc.core.types import GLOBAL_SCOPE, ScopeChain
from aimdoc.exceptions import (
    AIMError,
    AttributeTypeError,
    ErrorContext,
    ExternalCallError,
    MissingRequiredAttributeError,
)
from aimdoc.execution.events import EventEmitter
from aimdoc.execution.resolution import Snapshot, resolve_value
from aimdoc.execution.retries import maybe_await
from aimdoc.execution.signals import AbortSignal
from aimdoc.execution.state import ExecutionState, Frame
from aimdoc.execution.walker import walk
from aimdoc.rendering import Fragment, render_text

if TYPE_CHECKING:
    from aimdoc.config import RuntimeOptions
    from aimdoc.engine import EngineConfig
    from aimdoc.tags.registry import AttributeSpec


@dataclass(frozen=True)
class AdapterContext:
    """Second argument of every adapter operation."""

    state_manager: ExecutionState
    signal: AbortSignal
    scope: str = GLOBAL_SCOPE


@dataclass(frozen=True)
class RuntimeContext:
    """
    Params:
        state: Execution state shared by all branches
        config: Engine configuration built once per engine
        scopes: Scope chain, outermost first; the last token is the scope this
            handler writes into
    """

    state: ExecutionState
    config: "EngineConfig"
    scopes: ScopeChain = (GLOBAL_SCOPE,)

    @property
    def scope(self) -> str:
        return self.scopes[-1]

    @property
    def options(self) -> "RuntimeOptions":
        return self.state.options

    @property
    def signal(self) -> AbortSignal:
        return self.state.signal

    @property
    def events(self) -> EventEmitter:
        return EventEmitter(self.state.options)

    def child(self) -> "RuntimeContext":
        """Context for a nested branch with a freshly allocated scope."""
        return RuntimeContext(self.state, self.config, self.scopes + (self.state.new_scope(),))

    def release(self) -> None:
        """Drop every frame and registry entry of this context's own scope."""
        self.state.pop_stack(self.scope)
        self.state.clear_text_registry(self.scope)

    # Variables

    def snapshot(self) -> Snapshot:
        return Snapshot(self.state.snapshot(self.scopes), self.config.functions)

    def resolve(self, value: Any) -> Any:
        return resolve_value(value, self.snapshot())

    def lookup(self, id: str) -> Frame | None:
        return self.state.get_block_result_by_id(id, self.scopes)

    def push(self, id: str, variables: Mapping[str, Any]) -> Frame:
        frame = Frame(id=id, scope=self.scope, variables=dict(variables))
        self.state.push_stack(frame)
        return frame

    # Text

    def add_text(self, text: str) -> None:
        self.state.add_to_text_registry(text, self.scope)

    def add_rendered(self, fragments: list[Fragment]) -> None:
        """Record the output of a released child scope in this scope's registry."""
        text = render_text(fragments)
        if text:
            self.add_text(text)

    def text(self) -> str:
        """Accumulated text visible from this scope chain."""
        return "".join(self.state.get_text(self.scopes))

    # Nodes and attributes

    def walk(self, node: Node) -> AsyncIterator[Fragment]:
        return walk(node, self)

    async def walk_children(self, nodes: list[Node]) -> AsyncIterator[Fragment]:
        """Walk sibling nodes strictly in order."""
        for node in nodes:
            async with aclosing(walk(node, self)) as stream:
                async for fragment in stream:
                    yield fragment

    def error_context(self, node: Node, attribute: str | None = None) -> ErrorContext:
        return ErrorContext(tag=node.name, lines=list(node.lines), attribute=attribute, scope=self.scope)

    def attributes(
        self, node: Node, specs: Mapping[str, "AttributeSpec"]
    ) -> dict[str, Any]:
        """
        Resolve a node's attributes against the current state.

        Declared attributes are checked against their spec (required, type,
        default); undeclared ones are resolved and passed through. Deferred
        attributes are returned as written.

        Params:
            node: Tag node being executed
            specs: Attribute declarations of the tag handler

        Returns:
            Mapping of attribute name to resolved value

        Raises:
            MissingRequiredAttributeError: If a required attribute is absent
            AttributeTypeError: If a resolved value does not match its declared type
        """
        snapshot = self.snapshot()
        resolved: dict[str, Any] = {}
        for name, spec in specs.items():
            if name not in node.attributes:
                if spec.required:
                    raise MissingRequiredAttributeError(
                        node.name, name, self.error_context(node, name)
                    )
                resolved[name] = spec.default
                continue
            if spec.deferred:
                resolved[name] = node.attributes[name]
                continue
            value = resolve_value(node.attributes[name], snapshot)
            if value is not None and not spec.accepts(value):
                raise AttributeTypeError(node.name, name, spec.type, value)
            resolved[name] = value
        for name, raw in node.attributes.items():
            if name not in resolved:
                resolved[name] = resolve_value(raw, snapshot)
        return resolved

    # External collaborators

    async def call_adapter(self, adapter_type: str, operation: str, args: Any) -> Any:
        """
        Invoke an adapter operation, abandoning the wait if the signal fires.

        Raises:
            AdapterNotFoundError: If no adapter provides the operation
            AbortedError: If the signal fires first
            ExternalCallError: If the adapter fails
        """
        handler = self.state.get_adapter_handler(adapter_type, operation)
        self.signal.raise_if_aborted()
        context = AdapterContext(state_manager=self.state, signal=self.signal, scope=self.scope)
        try:
            return await self.signal.guard(maybe_await(handler(args, context)))
        except AIMError:
            raise
        except Exception as exc:
            raise ExternalCallError(f"{adapter_type}.{operation}", str(exc)) from exc

    async def emit(self, event: str, payload: Any = None) -> None:
        await self.events.emit(event, payload)
