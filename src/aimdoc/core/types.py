"""
Core type definitions for the AIM runtime.

This module contains fundamental type aliases used throughout the package for
type safety and consistency.
"""

from typing import Any

Variables = dict[str, Any]

ScopeChain = tuple[str, ...]

GLOBAL_SCOPE = "global"
