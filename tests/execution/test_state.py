"""
Tests for the per-execution state: variable stack, scopes and text registry.
"""

import pytest

from aimdoc.config import Adapter, RuntimeOptions
from aimdoc.core.types import GLOBAL_SCOPE
from aimdoc.exceptions import AdapterNotFoundError
from aimdoc.execution.signals import AbortController
from aimdoc.execution.state import ExecutionState, Frame


@pytest.fixture
def state():
    return ExecutionState(
        RuntimeOptions(variables={"x": 1}, env={"OPENAI_API_KEY": "sk-test"}),
        AbortController().signal,
        adapters={"code": Adapter(type="code", handlers={"eval": lambda args, context: None})},
    )


class TestVariableStack:
    """Tests for frames and scoped lookup."""

    def test_new_scopes_are_unique(self, state):
        scopes = {state.new_scope() for _ in range(5)}
        assert len(scopes) == 5
        assert GLOBAL_SCOPE not in scopes

    def test_repeated_id_shadows(self, state):
        state.push_stack(Frame("v", GLOBAL_SCOPE, {"number": 2}))
        state.push_stack(Frame("v", GLOBAL_SCOPE, {"number": 3}))

        assert state.get_block_result_by_id("v").variables == {"number": 3}
        assert len(state.stack) == 2

    def test_lookup_respects_scope_chain(self, state):
        branch = state.new_scope()
        state.push_stack(Frame("v", branch, {"n": 1}))

        assert state.get_block_result_by_id("v", (GLOBAL_SCOPE,)) is None
        assert state.get_block_result_by_id("v", (GLOBAL_SCOPE, branch)).variables == {"n": 1}

    def test_sibling_scopes_are_isolated(self, state):
        left, right = state.new_scope(), state.new_scope()
        state.push_stack(Frame("side", left, {"name": "left"}))
        state.push_stack(Frame("side", right, {"name": "right"}))

        assert state.snapshot((GLOBAL_SCOPE, left))["side"] == {"name": "left"}
        assert state.snapshot((GLOBAL_SCOPE, right))["side"] == {"name": "right"}

    def test_pop_removes_only_that_scope(self, state):
        branch = state.new_scope()
        state.push_stack(Frame("kept", GLOBAL_SCOPE))
        state.push_stack(Frame("dropped", branch))
        state.push_stack(Frame("dropped2", branch))

        removed = state.pop_stack(branch)

        assert [frame.id for frame in removed] == ["dropped", "dropped2"]
        assert [frame.id for frame in state.stack] == ["kept"]

    def test_snapshot_layers_frames_over_variables(self, state):
        state.push_stack(Frame("x", GLOBAL_SCOPE, {"shadow": True}))
        snapshot = state.snapshot()

        assert snapshot["x"] == {"shadow": True}

    def test_snapshot_includes_global_variables(self, state):
        assert state.snapshot((GLOBAL_SCOPE,)) == {"x": 1}

    def test_history_is_recorded(self, state):
        state.push_stack(Frame("v", GLOBAL_SCOPE))
        state.add_to_text_registry("hi")
        state.pop_stack(GLOBAL_SCOPE)

        assert [change.action for change in state.history] == ["push", "add_text", "pop"]
        assert state.history[1].registry_size == 1
        assert state.history[2].stack_depth == 0


class TestTextRegistry:
    """Tests for scoped text accumulation."""

    def test_text_in_insertion_order(self, state):
        branch = state.new_scope()
        state.add_to_text_registry("a")
        state.add_to_text_registry("b", branch)
        state.add_to_text_registry("c")

        assert state.get_text((GLOBAL_SCOPE, branch)) == ["a", "b", "c"]
        assert state.get_text((GLOBAL_SCOPE,)) == ["a", "c"]
        assert state.get_scoped_text(branch) == ["b"]

    def test_clear_only_that_scope(self, state):
        branch = state.new_scope()
        state.add_to_text_registry("a")
        state.add_to_text_registry("b", branch)
        state.clear_text_registry(branch)

        assert state.get_text((GLOBAL_SCOPE, branch)) == ["a"]


class TestSecretsAndAdapters:
    """Tests for secrets and adapter lookup."""

    def test_secrets_come_from_env(self, state):
        assert state.get_secret("OPENAI_API_KEY") == "sk-test"
        assert state.get_secret("MISSING") is None
        state.set_secret("MISSING", "now")
        assert state.get_secret("MISSING") == "now"

    def test_adapter_handler(self, state):
        assert callable(state.get_adapter_handler("code", "eval"))
        assert state.get_adapter("ai") is None

    def test_missing_adapter(self, state):
        with pytest.raises(AdapterNotFoundError, match="No adapter of type 'ai'"):
            state.get_adapter_handler("ai", "generate_text")

    def test_missing_operation(self, state):
        with pytest.raises(AdapterNotFoundError, match="no handler 'run'"):
            state.get_adapter_handler("code", "run")
