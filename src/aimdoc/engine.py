"""
Entry point for executing AIM documents.

    aim = Aim(document, RuntimeOptions(variables={"x": 1}))
    async for fragment in aim.stream():
        ...
    result = aim.run()          # synchronous, buffered
    print(result.text)

`EngineConfig` is built once per `Aim` from the runtime options: the tag
registry (built-ins plus plugin tags), the function table and the adapters.
Each call to `stream`/`execute` creates a fresh `ExecutionState` and its own
cancellation signal, linked to `RuntimeOptions.signal` and to the timeout.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Mapping

from attrs import frozen

from aimdoc.config import Adapter, Plugin, RuntimeOptions
from aimdoc.core.nodes import Document, Frontmatter
from aimdoc.core.types import Variables
from aimdoc.exceptions import (
    AbortedError,
    AdapterRegistrationError,
    ExecutionTimeoutError,
    PluginRegistrationError,
)
from aimdoc.execution.context import RuntimeContext
from aimdoc.execution.events import EventEmitter
from aimdoc.execution.signals import AbortController
from aimdoc.execution.state import ExecutionState
from aimdoc.execution.walker import walk_document
from aimdoc.functions import DEFAULT_FUNCTIONS
from aimdoc.rendering import Fragment, render_text
from aimdoc.tags import BUILTIN_NODES, BUILTIN_TAGS
from aimdoc.tags.registry import TagHandler, TagRegistry

logger = logging.getLogger(__name__)


@frozen
class EngineConfig:
    """Immutable configuration resolved from `RuntimeOptions` before execution."""

    tags: TagRegistry
    nodes: Mapping[str, TagHandler]
    functions: Mapping[str, Callable[..., Any]]
    adapters: Mapping[str, Adapter]
    plugins: Mapping[str, Plugin]

    @classmethod
    def build(cls, options: RuntimeOptions) -> "EngineConfig":
        """
        Validate and merge adapters and plugins.

        Params:
            options: Runtime options

        Returns:
            Engine configuration

        Raises:
            AdapterRegistrationError: If two adapters share a type
            PluginRegistrationError: If two plugins share a name or a plugin
                requires an adapter that is not registered
        """
        adapters: dict[str, Adapter] = {}
        for adapter in options.adapters:
            if adapter.type in adapters:
                raise AdapterRegistrationError(adapter.type, "an adapter of this type is already registered")
            if adapter.init is not None:
                adapter.init()
            adapters[adapter.type] = adapter

        tags = TagRegistry(BUILTIN_TAGS)
        functions = dict(DEFAULT_FUNCTIONS)
        plugins: dict[str, Plugin] = {}
        for registration in options.plugins:
            plugin = registration.plugin
            if plugin.name in plugins:
                raise PluginRegistrationError(plugin.name, "a plugin with this name is already registered")
            missing = [name for name in plugin.requires_adapters if name not in adapters]
            if missing:
                raise PluginRegistrationError(plugin.name, f"missing required adapter(s): {', '.join(missing)}")
            if plugin.init is not None:
                plugin.init(registration.options)
            try:
                tags.register_plugin(plugin.name, plugin.tags)
            except TypeError as exc:
                raise PluginRegistrationError(plugin.name, str(exc)) from exc
            for name, function in plugin.functions.items():
                functions[f"{plugin.name}_{name}"] = function
                if name in DEFAULT_FUNCTIONS:
                    logger.warning("Plugin '%s' function '%s' is shadowed by the built-in function", plugin.name, name)
                    continue
                functions[name] = function
            plugins[plugin.name] = plugin
            logger.debug("Registered plugin %s %s", plugin.name, plugin.version)

        return cls(tags=tags, nodes=dict(BUILTIN_NODES), functions=functions, adapters=adapters, plugins=plugins)


@dataclass
class ExecutionResult:
    """Buffered outcome of one execution."""

    fragments: list[Fragment] = field(default_factory=list)
    variables: Variables = field(default_factory=dict)

    @property
    def text(self) -> str:
        return render_text(self.fragments)


class Aim:
    """
    Executes one compiled document.

    Params:
        document: Compiled document
        options: Runtime options; defaults apply when omitted
    """

    def __init__(self, document: Document, options: RuntimeOptions | None = None):
        self.document = document
        self.options = options or RuntimeOptions()
        self.config = EngineConfig.build(self.options)

    @classmethod
    def from_content(cls, content: str, options: RuntimeOptions | None = None) -> "Aim":
        """Compile `content` with the configured compiler and wrap it in an engine."""
        options = options or RuntimeOptions()
        return cls(options.get_compiler().compile(content), options)

    @property
    def frontmatter(self) -> Frontmatter:
        return self.document.frontmatter

    def create_state(self, controller: AbortController) -> ExecutionState:
        return ExecutionState(
            self.options,
            controller.signal,
            adapters=self.config.adapters,
            plugins=self.config.plugins,
        )

    async def stream(self, inputs: dict[str, Any] | None = None) -> AsyncIterator[Fragment]:
        """
        Execute the document, yielding fragments as they are produced.

        Params:
            inputs: Values for the declared inputs, overriding `RuntimeOptions.inputs`

        Raises:
            AbortedError: If the execution is aborted or times out
            AIMError: Whatever a handler raises; fragments already yielded stand
        """
        controller = AbortController()
        async with aclosing(self._execute(controller, self.create_state(controller), inputs)) as stream:
            async for fragment in stream:
                yield fragment

    async def execute(self, inputs: dict[str, Any] | None = None) -> ExecutionResult:
        """Execute the document and buffer every fragment."""
        controller = AbortController()
        state = self.create_state(controller)
        result = ExecutionResult()
        async with aclosing(self._execute(controller, state, inputs)) as stream:
            async for fragment in stream:
                result.fragments.append(fragment)
        result.variables = state.snapshot()
        return result

    def run(self, inputs: dict[str, Any] | None = None) -> ExecutionResult:
        """Synchronous wrapper around `execute` for callers without an event loop."""
        return asyncio.run(self.execute(inputs))

    async def _execute(
        self,
        controller: AbortController,
        state: ExecutionState,
        inputs: dict[str, Any] | None,
    ) -> AsyncIterator[Fragment]:
        events = EventEmitter(self.options)
        detach = controller.follow(self.options.signal)
        timer = None
        if self.options.timeout is not None:
            timer = asyncio.get_running_loop().call_later(
                self.options.timeout, controller.abort, ExecutionTimeoutError(self.options.timeout)
            )

        context = RuntimeContext(state, self.config)
        values = dict(self.options.inputs)
        values.update(inputs or {})
        await events.emit("start", "Execution started")
        try:
            async with aclosing(walk_document(self.document, context, values)) as stream:
                async for fragment in stream:
                    await events.emit("data", fragment)
                    yield fragment
            await events.emit("success", "Execution completed")
        except AbortedError as exc:
            await events.emit("abort", exc)
            raise
        except Exception as exc:
            await events.emit("error", exc)
            raise
        finally:
            if timer is not None:
                timer.cancel()
            detach()
            await events.emit("finish", "Execution finished")
