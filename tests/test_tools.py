"""
Unit tests for the tool schema boundary: registry, validation,
execution and the built-in tools.
"""

import pytest

from convoflow.errors import TransitionArgumentsError
from convoflow.models.history import HistoryEntry
from convoflow.models.tool_call import ToolCall
from convoflow.tools.builtin.history_tool import HISTORY_TOOL_NAME, history_tool
from convoflow.tools.builtin.transition_tool import TransitionBinding
from convoflow.tools.executor import ToolExecutor
from convoflow.tools.registry import ToolRegistry
from convoflow.tools.schema import Tool
from convoflow.tools.validator import ArgumentValidationError, ArgumentValidator


def search_tool(handler=None):
    return Tool(
        name="kb_search",
        description="Search the knowledge base",
        handler=handler or (lambda args: {"hits": [args["query"]]}),
        input_schema={"query": "string", "limit": "int?"},
    )


class TickingClock:
    """Monotonic stub advancing 25ms per reading."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        value = self.now
        self.now += 0.025
        return value


# ============================================================================
# Tool / Registry
# ============================================================================


class TestToolSchema:

    def test_compact_schema_to_json_schema(self):
        params = search_tool().json_parameters()
        assert params["properties"]["query"] == {"type": "string"}
        assert params["properties"]["limit"] == {"type": "integer"}
        assert params["required"] == ["query"]

    def test_function_schema_shape(self):
        schema = search_tool().to_function_schema()
        assert schema["type"] == "function"
        assert schema["function"]["name"] == "kb_search"

    def test_handler_must_be_callable(self):
        with pytest.raises(TypeError):
            Tool(name="x", description="", handler=None, input_schema={})


class TestToolRegistry:

    def test_register_and_lookup(self):
        registry = ToolRegistry()
        registry.register(search_tool())
        assert registry.has_tool("kb_search")
        assert registry.list_tool_names() == ["kb_search"]
        assert len(registry.function_manifest()) == 1

    def test_duplicate_rejected(self):
        registry = ToolRegistry()
        registry.register(search_tool())
        with pytest.raises(ValueError):
            registry.register(search_tool())

    def test_register_many_rejects_duplicates_in_batch(self):
        registry = ToolRegistry()
        with pytest.raises(ValueError, match="kb_search"):
            registry.register_many([search_tool(), search_tool()])
        assert len(registry) == 0

    def test_unknown_tool_lookup(self):
        with pytest.raises(KeyError):
            ToolRegistry().get("nope")


# ============================================================================
# Argument Validator
# ============================================================================


class TestArgumentValidator:

    @pytest.fixture
    def validator(self):
        registry = ToolRegistry()
        registry.register(search_tool())
        return ArgumentValidator(registry)

    def test_valid_arguments(self, validator):
        assert validator.validate("kb_search", {"query": "hours"}) == {"query": "hours"}

    def test_missing_required(self, validator):
        with pytest.raises(ArgumentValidationError, match="Missing"):
            validator.validate("kb_search", {"limit": 3})

    def test_unknown_argument(self, validator):
        with pytest.raises(ArgumentValidationError, match="Unknown"):
            validator.validate("kb_search", {"query": "x", "page": 2})

    def test_bool_is_not_int(self, validator):
        with pytest.raises(ArgumentValidationError, match="limit"):
            validator.validate("kb_search", {"query": "x", "limit": True})


# ============================================================================
# Executor
# ============================================================================


class TestToolExecutor:

    def _executor(self, *tools, clock=None):
        registry = ToolRegistry()
        registry.register_many(tools)
        return ToolExecutor(registry, clock=clock)

    def test_success_record_with_latency(self):
        executor = self._executor(search_tool(), clock=TickingClock())
        record = executor.execute(ToolCall(name="kb_search", arguments={"query": "hours"}))

        assert record.is_success
        assert record.result == {"hits": ["hours"]}
        assert record.latency_ms == 25
        assert executor.describe(record) == {"hits": ["hours"]}

    def test_unknown_tool_is_reported_not_raised(self):
        executor = self._executor(search_tool())
        record = executor.execute(ToolCall(name="weather", arguments={}))

        assert not record.is_success
        assert "not registered" in record.error
        assert executor.describe(record) == {"error": record.error}

    def test_invalid_arguments_are_reported(self):
        executor = self._executor(search_tool())
        record = executor.execute(ToolCall(name="kb_search", arguments={}))
        assert record.error.startswith("Invalid arguments")

    def test_handler_failure_is_reported(self):
        def broken(args):
            raise RuntimeError("index offline")

        executor = self._executor(search_tool(broken))
        record = executor.execute(ToolCall(name="kb_search", arguments={"query": "x"}))

        assert record.result is None
        assert "index offline" in record.error

    def test_engine_errors_propagate(self, graph):
        binding = TransitionBinding(graph, graph.get("conv_1"))
        executor = self._executor(binding.tool())

        with pytest.raises(TransitionArgumentsError):
            executor.execute(
                ToolCall(name="transition", arguments={"current_node_id": "conv_1", "option_id": 9})
            )


# ============================================================================
# Built-in Tools
# ============================================================================


class TestHistoryTool:

    def test_returns_full_raw_history(self):
        history = [
            HistoryEntry(role="user", content="hi", turn_index=0),
            HistoryEntry(role="assistant", content="hello", turn_index=0),
            HistoryEntry(role="user", content="my name is Ada", turn_index=1),
        ]
        tool = history_tool(history)

        assert tool.name == HISTORY_TOOL_NAME
        output = tool.handler({})
        assert output["turns"] == 2
        assert [e["content"] for e in output["entries"]] == ["hi", "hello", "my name is Ada"]


class TestTransitionBinding:

    def test_first_call_applies(self, graph):
        binding = TransitionBinding(graph, graph.start_node)
        out = binding.handle({"current_node_id": "start", "next_node_id": "conv_1"})

        assert out["status"] == "applied"
        assert out["next_node_id"] == "conv_1"
        assert binding.result.next_node_id == "conv_1"

    def test_second_call_is_not_reevaluated(self, graph):
        binding = TransitionBinding(graph, graph.start_node)
        binding.handle({"current_node_id": "start", "next_node_id": "conv_1"})
        out = binding.handle({"current_node_id": "start", "next_node_id": "conv_2"})

        assert out["status"] == "already_applied"
        assert binding.result.next_node_id == "conv_1"

    def test_tool_schema_is_node_specific(self, graph):
        tool = TransitionBinding(graph, graph.get("conv_2")).tool()

        assert tool.self_validating
        assert tool.parameters["properties"]["option_id"]["enum"] == [-1, 0]
