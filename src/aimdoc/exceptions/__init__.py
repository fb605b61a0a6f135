"""
AIM runtime exception classes.

This package provides all exception types used throughout the AIM execution
engine for consistent error handling and reporting.
"""

from aimdoc.exceptions.core import (
    AbortedError,
    AdapterNotFoundError,
    AdapterRegistrationError,
    AIMError,
    AttributeTypeError,
    ConfigurationError,
    ContentNotFoundError,
    DivisionByZeroError,
    DocumentFormatError,
    ErrorContext,
    ExecutionTimeoutError,
    ExternalCallError,
    InputUnavailableError,
    InvalidArgumentError,
    InvalidLoopError,
    InvalidSourceError,
    MissingIdError,
    MissingRequiredAttributeError,
    PluginRegistrationError,
    UnknownFunctionError,
    UnknownTagError,
)

__all__ = [
    "AIMError",
    "ErrorContext",
    "AbortedError",
    "ExecutionTimeoutError",
    "UnknownTagError",
    "UnknownFunctionError",
    "MissingRequiredAttributeError",
    "MissingIdError",
    "AttributeTypeError",
    "InvalidSourceError",
    "DivisionByZeroError",
    "InvalidArgumentError",
    "InvalidLoopError",
    "InputUnavailableError",
    "ExternalCallError",
    "ContentNotFoundError",
    "ConfigurationError",
    "PluginRegistrationError",
    "AdapterRegistrationError",
    "AdapterNotFoundError",
    "DocumentFormatError",
]
