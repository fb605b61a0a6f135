"""
aimdoc - Execution engine for AIM prompt documents

AIM is a Markdown superset for composing AI prompt pipelines. aimdoc walks a
compiled AIM document, resolving variables and running tags (conditionals,
loops, parallel branches, sub-flows, model calls) while streaming its output.
"""

from importlib.metadata import version

from aimdoc.config import Adapter, InputRequest, Plugin, PluginRegistration, RuntimeOptions
from aimdoc.core.nodes import Document, Frontmatter, Node
from aimdoc.engine import Aim, EngineConfig, ExecutionResult
from aimdoc.execution.signals import AbortController, AbortSignal
from aimdoc.models import LLMProvider
from aimdoc.rendering import RenderTag, render_text
from aimdoc.tags.registry import AttributeSpec, TagHandler

__version__ = version("aimdoc")

__all__ = [
    "__version__",
    "Aim",
    "EngineConfig",
    "ExecutionResult",
    "RuntimeOptions",
    "Adapter",
    "Plugin",
    "PluginRegistration",
    "InputRequest",
    "Document",
    "Frontmatter",
    "Node",
    "AbortController",
    "AbortSignal",
    "RenderTag",
    "render_text",
    "AttributeSpec",
    "TagHandler",
    "LLMProvider",
]
