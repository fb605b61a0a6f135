"""
Runtime configuration models.

`RuntimeOptions` is everything a host passes to an execution: initial
variables and inputs, the cancellation signal, timeouts and retries, lifecycle
callbacks, adapters for external collaborators and plugins contributing tags
and functions.
"""

from pathlib import Path
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field

from aimdoc.content import FileSystemContentResolver, InMemoryContentResolver, MarkdocJSONCompiler
from aimdoc.execution.signals import AbortSignal

Callback = Callable[..., Any]


class Adapter(BaseModel):
    """
    Bridge to an external collaborator (model provider, code sandbox, ...).

    Every handler is called as `handler(args, context)` with an
    `AdapterContext` and may return a value or an awaitable.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    handlers: dict[str, Callback] = Field(default_factory=dict)
    init: Callable[[], Any] | None = None


class Plugin(BaseModel):
    """Bundle of tag handlers and expression functions."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    version: str = "0.0.0"
    tags: dict[str, Any] = Field(default_factory=dict)
    functions: dict[str, Callback] = Field(default_factory=dict)
    requires_adapters: list[str] = Field(default_factory=list)
    init: Callable[[Any], Any] | None = None


class PluginRegistration(BaseModel):
    plugin: Plugin
    options: Any = None


class InputRequest(BaseModel):
    """What the `input` tag asks the host for."""

    name: str
    description: str = ""
    type: str = "text/plain"
    src: str | None = None


class RuntimeOptions(BaseModel):
    """
    Options of one engine.

    Params:
        variables: Global variables, visible to every scope
        inputs: Values for the document's declared inputs and for `input` tags
        signal: External cancellation signal linked to every execution
        timeout: Execution timeout in seconds, None disables it
        max_retries: Attempts for retried external calls (structured outputs, flow input generation)
        retry_backoff: Base delay in seconds between retries
        environment: `node` loads sub-flows from disk, `browser` from `files`
        files: In-memory sub-flow sources by path
        root: Base directory for relative sub-flow paths
        content_resolver: Custom sub-flow content loader, overrides `environment`
        compiler: Compiler turning sub-flow source into a Document
        tools: Tools made available to AI adapters
        adapters: External collaborators by type
        plugins: Plugins to register
        env: Secrets exposed to adapters through the state manager
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    variables: dict[str, Any] = Field(default_factory=dict)
    inputs: dict[str, Any] = Field(default_factory=dict, alias="input")
    signal: AbortSignal | None = None
    timeout: float | None = Field(default=50.0, gt=0)
    max_retries: int = Field(default=5, ge=1)
    retry_backoff: float = Field(default=0.5, ge=0)
    environment: Literal["node", "browser"] = "node"
    files: dict[str, str] = Field(default_factory=dict)
    root: Path | None = None
    content_resolver: Any = None
    compiler: Any = None
    tools: dict[str, Any] = Field(default_factory=dict)
    adapters: list[Adapter] = Field(default_factory=list)
    plugins: list[PluginRegistration] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    on_start: Callback | None = None
    on_step: Callback | None = None
    on_data: Callback | None = None
    on_output: Callback | None = None
    on_log: Callback | None = None
    on_success: Callback | None = None
    on_error: Callback | None = None
    on_abort: Callback | None = None
    on_finish: Callback | None = None
    on_user_input: Callback | None = None

    def get_content_resolver(self):
        """Content resolver for sub-flows, chosen by `environment` unless set explicitly."""
        if self.content_resolver is not None:
            return self.content_resolver
        if self.environment == "browser":
            return InMemoryContentResolver(self.files)
        return FileSystemContentResolver(self.root)

    def get_compiler(self):
        return self.compiler if self.compiler is not None else MarkdocJSONCompiler()
