"""
Core AIM document components.

This package provides the fundamental building blocks of the runtime: the
document/node model, attribute expressions and shared type definitions.
"""

from aimdoc.core.expressions import (
    Expression,
    FunctionCall,
    Literal,
    VariableRef,
    decode_markdoc_value,
)
from aimdoc.core.nodes import Document, Frontmatter, InputDeclaration, Node
from aimdoc.core.types import GLOBAL_SCOPE, ScopeChain, Variables

__all__ = [
    "Document",
    "Frontmatter",
    "InputDeclaration",
    "Node",
    "Expression",
    "FunctionCall",
    "Literal",
    "VariableRef",
    "decode_markdoc_value",
    "GLOBAL_SCOPE",
    "ScopeChain",
    "Variables",
]
