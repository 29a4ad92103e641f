"""
Shared fixtures for the convoflow test suite.

The reasoning model is always replaced by ScriptedLLMClient; no test
talks to a real backend.
"""

import json
from pathlib import Path

import pytest

from convoflow.config import EngineConfig
from convoflow.engine.core import TurnEngine
from convoflow.engine.llm.scripted_client import ScriptedLLMClient, text_reply
from convoflow.flow.graph import FlowGraph
from convoflow.models import ExecutionContext, MemoryState

FIXTURES = Path(__file__).parent / "fixtures"


def fixed_clock():
    return 0.0


def no_facts(request):
    return text_reply('{"facts": []}')


@pytest.fixture
def fixtures_dir():
    return FIXTURES


@pytest.fixture
def graph():
    return FlowGraph.load(FIXTURES / "flow.json")


@pytest.fixture
def flow_data():
    return json.loads((FIXTURES / "flow.json").read_text(encoding="utf-8"))


@pytest.fixture
def config():
    return EngineConfig(max_tool_iterations=4, summarize_every=3, compaction_threshold=2)


@pytest.fixture
def make_engine(graph, config):
    """Build a TurnEngine around a scripted model."""

    def _make(script=(), curator=no_facts, retrieval_tools=(), engine_config=None):
        llm = ScriptedLLMClient(script, curator=curator)
        engine = TurnEngine(
            graph,
            llm,
            retrieval_tools=retrieval_tools,
            config=engine_config or config,
            clock=fixed_clock,
        )
        return engine, llm

    return _make


@pytest.fixture
def make_ctx():
    def _make(node_id="start", message="Hello", history=(), memory=None, **kwargs):
        return ExecutionContext(
            current_node_id=node_id,
            latest_user_message=message,
            history=history,
            memory=memory or MemoryState.empty(),
            **kwargs,
        )

    return _make
