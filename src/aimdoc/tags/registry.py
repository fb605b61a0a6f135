"""
Tag handler descriptors and the registry resolving tag names to handlers.

The registry is built once per engine from the built-in handlers and the
registered plugins and is never mutated during execution. Precedence is
explicit:

    - built-in tags always win over plugin tags of the same name;
    - every plugin tag is reachable as `<plugin>_<tag>`;
    - the bare name of a plugin tag goes to the plugin registered last.
"""

import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Mapping

from attrs import field, frozen

from aimdoc.core.nodes import Node
from aimdoc.rendering import Fragment

if TYPE_CHECKING:
    from aimdoc.engine import EngineConfig
    from aimdoc.execution.context import RuntimeContext

logger = logging.getLogger(__name__)

TagRuntime = Callable[[Node, "EngineConfig", "RuntimeContext"], AsyncIterator[Fragment]]

_type_checks: dict[str, Callable[[Any], bool]] = {
    "any": lambda value: True,
    "string": lambda value: isinstance(value, str),
    "number": lambda value: isinstance(value, (int, float)) and not isinstance(value, bool),
    "boolean": lambda value: isinstance(value, bool),
    "object": lambda value: isinstance(value, dict),
    "array": lambda value: isinstance(value, (list, tuple)),
}


@frozen
class AttributeSpec:
    """
    Declaration of one tag attribute.

    Deferred attributes are handed to the handler unresolved, for expressions
    the handler evaluates itself (e.g. a loop condition re-checked per iteration).
    """

    type: str = "any"
    required: bool = False
    default: Any = None
    deferred: bool = False

    def __attrs_post_init__(self):
        if self.type not in _type_checks:
            raise ValueError(
                f"Unknown attribute type '{self.type}'. Known types: {', '.join(_type_checks)}"
            )

    def accepts(self, value: Any) -> bool:
        return _type_checks[self.type](value)


@frozen
class TagHandler:
    """
    Capability registered for a tag name.

    Params:
        render_name: Name of the render tag the handler produces
        runtime: Async generator function `(node, config, context)` yielding fragments
        attributes: Declared attributes, resolved by `RuntimeContext.attributes`
        self_closing: Whether the tag takes no children
    """

    render_name: str
    runtime: TagRuntime
    attributes: dict[str, AttributeSpec] = field(factory=dict, hash=False)
    self_closing: bool = False


class TagRegistry:
    """Maps tag names to handlers with built-in precedence."""

    def __init__(self, builtins: Mapping[str, TagHandler]):
        self._builtins = dict(builtins)
        self._plugin_tags: dict[str, TagHandler] = {}
        self._owners: dict[str, str] = {}

    def register_plugin(self, plugin_name: str, tags: Mapping[str, TagHandler]) -> None:
        """
        Register the tags of one plugin.

        Params:
            plugin_name: Name of the contributing plugin
            tags: Handlers by bare tag name
        """
        for name, handler in tags.items():
            if not isinstance(handler, TagHandler):
                raise TypeError(
                    f"Tag '{name}' of plugin '{plugin_name}' must be a TagHandler, got {type(handler).__name__}"
                )
            self._plugin_tags[f"{plugin_name}_{name}"] = handler
            if name in self._builtins:
                logger.warning(
                    "Plugin '%s' tag '%s' is shadowed by the built-in tag; use '%s_%s'",
                    plugin_name, name, plugin_name, name,
                )
                continue
            previous = self._owners.get(name)
            if previous is not None and previous != plugin_name:
                logger.warning(
                    "Plugin '%s' tag '%s' replaces the one registered by plugin '%s'",
                    plugin_name, name, previous,
                )
            self._plugin_tags[name] = handler
            self._owners[name] = plugin_name

    def get(self, name: str) -> TagHandler | None:
        handler = self._builtins.get(name)
        if handler is not None:
            return handler
        return self._plugin_tags.get(name)

    def owner(self, name: str) -> str | None:
        """Plugin providing the bare tag `name`, None for built-ins and unknown tags."""
        if name in self._builtins:
            return None
        return self._owners.get(name)

    def names(self) -> list[str]:
        return sorted(set(self._builtins) | set(self._plugin_tags))

    def __contains__(self, name: object) -> bool:
        return name in self._builtins or name in self._plugin_tags
