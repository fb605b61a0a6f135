"""
Exception classes for AIM document execution.

This module defines specific exception types for the error conditions that can
occur while an AIM document is configured, decoded, resolved, and executed.
Every exception derives from `AIMError` so hosts can catch the whole family.
"""

from dataclasses import dataclass, field


@dataclass
class ErrorContext:
    """
    Location information attached to an execution error.

    Captures where in the document an error was raised: the tag being executed,
    the source lines the compiler recorded for that node and, when relevant,
    the attribute that failed.

    Params:
        tag: Name of the tag (or node type) being executed
        lines: Source line numbers recorded by the compiler for the node
        attribute: Attribute name if the error concerns a single attribute
        scope: Scope token the failing handler was running in
    """

    tag: str | None = None
    lines: list[int] = field(default_factory=list)
    attribute: str | None = None
    scope: str | None = None

    def format_location(self) -> str:
        """
        Format location information for an error message.

        Returns:
            Indented multi-line location description (empty if nothing is known)
        """
        lines = []

        if self.tag:
            if self.attribute:
                lines.append(f"  in {{% {self.tag} %}} attribute '{self.attribute}'")
            else:
                lines.append(f"  in {{% {self.tag} %}}")

        if self.lines:
            first, last = self.lines[0], self.lines[-1]
            if first == last:
                lines.append(f"  at line {first + 1}")
            else:
                lines.append(f"  at lines {first + 1}-{last + 1}")

        if self.scope:
            lines.append(f"  scope: {self.scope}")

        return "\n".join(lines)


def _with_context(message: str, context: ErrorContext | None) -> str:
    if context is None:
        return message
    location = context.format_location()
    return f"{message}\n{location}" if location else message


class AIMError(Exception):
    """Base exception for all AIM runtime errors."""

    pass


class AbortedError(AIMError):
    """Raised when the shared cancellation signal of an execution has fired."""

    def __init__(self, reason: str = "Execution aborted"):
        """
        Initialize the exception.

        Params:
            reason: Human readable reason passed to the abort call
        """
        self.reason = reason
        super().__init__(reason)


class ExecutionTimeoutError(AbortedError):
    """Raised when an execution exceeds its configured timeout."""

    def __init__(self, timeout: float):
        """
        Initialize the exception.

        Params:
            timeout: The timeout in seconds that was exceeded
        """
        self.timeout = timeout
        super().__init__(f"Execution timed out after {timeout:g} seconds")


class UnknownTagError(AIMError):
    """Raised when a tag node has no registered handler."""

    def __init__(self, tag: str, context: ErrorContext | None = None):
        """
        Initialize the exception.

        Params:
            tag: The tag name that could not be dispatched
            context: Optional location of the offending node
        """
        self.tag = tag
        self.context = context
        super().__init__(_with_context(f"No handler registered for tag '{tag}'", context))


class UnknownFunctionError(AIMError):
    """Raised when an expression calls a function that is not configured."""

    def __init__(self, name: str):
        """
        Initialize the exception.

        Params:
            name: The unknown function name
        """
        self.name = name
        super().__init__(f"Function '{name}' is not defined")


class MissingRequiredAttributeError(AIMError):
    """Raised when a tag is missing an attribute it cannot run without."""

    def __init__(self, tag: str, attribute: str, context: ErrorContext | None = None):
        """
        Initialize the exception.

        Params:
            tag: The tag that requires the attribute
            attribute: The missing attribute name
            context: Optional location of the offending node
        """
        self.tag = tag
        self.attribute = attribute
        self.context = context
        super().__init__(
            _with_context(f"Tag '{tag}' requires attribute '{attribute}'", context)
        )


class MissingIdError(MissingRequiredAttributeError):
    """Raised when a `set` tag has no `id` to bind its fields under."""

    def __init__(self, tag: str = "set", context: ErrorContext | None = None):
        super().__init__(tag, "id", context)


class AttributeTypeError(AIMError):
    """Raised when a resolved attribute value does not match its declared type."""

    def __init__(self, tag: str, attribute: str, expected: str, value: object):
        """
        Initialize the exception.

        Params:
            tag: The tag declaring the attribute
            attribute: Attribute name
            expected: Name of the expected value type
            value: The offending resolved value
        """
        self.tag = tag
        self.attribute = attribute
        self.expected = expected
        self.value = value
        super().__init__(
            f"Attribute '{attribute}' of tag '{tag}' must be {expected}, got {type(value).__name__}"
        )


class InvalidSourceError(AIMError):
    """Raised when an `input` or `media` source uses a scheme other than file/http/https."""

    def __init__(self, src: str):
        """
        Initialize the exception.

        Params:
            src: The rejected source string
        """
        self.src = src
        super().__init__(
            f"Invalid source '{src}': source must start with file://, http://, or https://"
        )


class DivisionByZeroError(AIMError):
    """Raised by the `divide` function when the divisor is zero."""

    def __init__(self, dividend: object):
        self.dividend = dividend
        super().__init__(f"Division by zero (dividend: {dividend!r})")


class InvalidArgumentError(AIMError):
    """Raised when a function receives an argument it cannot interpret."""

    def __init__(self, function: str, value: object, reason: str):
        """
        Initialize the exception.

        Params:
            function: Name of the function called
            value: The offending argument
            reason: Why the argument was rejected
        """
        self.function = function
        self.value = value
        super().__init__(f"Invalid argument {value!r} for '{function}': {reason}")


class InvalidLoopError(AIMError):
    """Raised when a loop does not declare exactly one of count, items, or condition."""

    def __init__(self, reason: str, context: ErrorContext | None = None):
        self.reason = reason
        self.context = context
        super().__init__(_with_context(reason, context))


class InputUnavailableError(AIMError):
    """Raised when an input value is neither supplied nor obtainable from the user."""

    def __init__(self, name: str):
        """
        Initialize the exception.

        Params:
            name: The name of the requested input
        """
        self.name = name
        super().__init__(
            f"No value supplied for input '{name}' and no on_user_input handler configured"
        )


class ExternalCallError(AIMError):
    """Raised when an external collaborator (adapter, loader, model) fails."""

    def __init__(self, operation: str, reason: str):
        """
        Initialize the exception.

        Params:
            operation: Description of the external call, e.g. "code.eval"
            reason: The underlying failure
        """
        self.operation = operation
        self.reason = reason
        super().__init__(f"External call '{operation}' failed: {reason}")


class ContentNotFoundError(ExternalCallError):
    """Raised when a content resolver has no document for a path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__("content.load", f"no content found for path '{path}'")


class ConfigurationError(AIMError):
    """Raised when runtime options cannot be turned into a working configuration."""

    pass


class PluginRegistrationError(ConfigurationError):
    """Raised when a plugin cannot be registered."""

    def __init__(self, plugin: str, reason: str):
        self.plugin = plugin
        self.reason = reason
        super().__init__(f"Cannot register plugin '{plugin}': {reason}")


class AdapterRegistrationError(ConfigurationError):
    """Raised when an adapter cannot be registered."""

    def __init__(self, adapter: str, reason: str):
        self.adapter = adapter
        self.reason = reason
        super().__init__(f"Cannot register adapter '{adapter}': {reason}")


class AdapterNotFoundError(ConfigurationError):
    """Raised when a handler needs an adapter type or operation that is not registered."""

    def __init__(self, adapter_type: str, operation: str | None = None):
        self.adapter_type = adapter_type
        self.operation = operation
        if operation:
            message = f"Adapter '{adapter_type}' has no handler '{operation}'"
        else:
            message = f"No adapter of type '{adapter_type}' is registered"
        super().__init__(message)


class DocumentFormatError(AIMError):
    """Raised when compiler output cannot be decoded into a document."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid document: {reason}")
