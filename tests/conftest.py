"""
Shared test fixtures and utilities for the aimdoc test suite.
"""

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import pytest

from aimdoc.config import Adapter, RuntimeOptions
from aimdoc.engine import Aim, EngineConfig, ExecutionResult
from aimdoc.execution.context import RuntimeContext
from aimdoc.execution.signals import AbortController
from aimdoc.execution.state import ExecutionState


def run_document(document, inputs=None, **options) -> ExecutionResult:
    """Execute a document synchronously with the given runtime options."""
    return Aim(document, RuntimeOptions(**options)).run(inputs)


def collect(stream) -> list:
    """Drain an async fragment stream from synchronous test code."""

    async def drain():
        return [fragment async for fragment in stream]

    return asyncio.run(drain())


def make_context(**options) -> RuntimeContext:
    """Root context of a fresh execution, for driving handlers directly."""
    runtime_options = RuntimeOptions(**options)
    config = EngineConfig.build(runtime_options)
    state = ExecutionState(runtime_options, AbortController().signal, adapters=config.adapters)
    return RuntimeContext(state, config)


def serialized(root: dict, frontmatter: str | None = None) -> str:
    """JSON text as produced by the external compiler."""
    return json.dumps({"ast": root, "frontmatter": frontmatter})


@pytest.fixture
def code_adapter():
    """`code` adapter whose `eval` echoes a fixed result.

    Usage:
        def test_something(code_adapter):
            code_adapter.handlers["eval"].return_value = 42
    """
    return Adapter(type="code", handlers={"eval": AsyncMock(return_value="done")})


@pytest.fixture
def ai_adapter():
    """`ai` adapter returning canned text and objects without calling any model."""
    return Adapter(
        type="ai",
        handlers={
            "generate_text": AsyncMock(return_value="generated"),
            "generate_object": AsyncMock(return_value={"answer": 42}),
        },
    )


@pytest.fixture
def callbacks():
    """One Mock per lifecycle callback, keyed by option name."""
    return {
        name: Mock()
        for name in ("on_start", "on_step", "on_data", "on_output", "on_log", "on_success", "on_error", "on_abort", "on_finish")
    }
