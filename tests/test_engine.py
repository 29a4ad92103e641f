"""
Scenario tests for TurnEngine.execute / execute_test.

Every turn runs against the fixture flow with a scripted model; the
curation model is answered by a curator callable that inspects the
system prompt to tell extraction from summarization.
"""

import json

import pytest

from convoflow.engine.llm.scripted_client import text_reply, tool_reply
from convoflow.errors import (
    FailureCode,
    NodeResolutionError,
    ToolLoopNonConvergence,
    TransitionArgumentsError,
    TransitionNotCalledError,
)
from convoflow.models import HistoryEntry, MemoryPipelineSettings, MemoryState
from convoflow.models.memory import FactRecord
from convoflow.tools.schema import Tool


def start_turn(reply="Welcome! What's your name?"):
    return [
        tool_reply("transition", {"current_node_id": "start", "next_node_id": "conv_1"}),
        text_reply(reply),
    ]


def option_turn(node_id, option_id, reply="Sure."):
    return [
        tool_reply("transition", {"current_node_id": node_id, "option_id": option_id}),
        text_reply(reply),
    ]


def curator(facts=None, summary="The user introduced themselves."):
    """Curation responder: facts for extraction, ``summary`` otherwise."""

    def respond(request):
        if "extract durable facts" in request.messages[0]["content"]:
            return text_reply(json.dumps({"facts": facts or []}))
        return text_reply(summary)

    return respond


def prior_history(turns):
    entries = []
    for turn in range(turns):
        entries.append(HistoryEntry(role="user", content=f"message {turn}", turn_index=turn))
        entries.append(HistoryEntry(role="assistant", content=f"reply {turn}", turn_index=turn))
    return tuple(entries)


# ============================================================================
# Transitions
# ============================================================================


class TestTransitions:

    def test_start_to_conversation(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn())
        result = engine.execute(make_ctx("start", "Hi"))

        assert result.current_node_id == "conv_1"
        assert result.flow_completed is False
        assert result.next_node_descriptor["id"] == "conv_1"
        assert result.assistant_message == "Welcome! What's your name?"
        assert result.tool_call("transition").args == {
            "current_node_id": "start",
            "next_node_id": "conv_1",
        }

    def test_stay_keeps_current_node(self, make_engine, make_ctx):
        engine, _ = make_engine(option_turn("conv_1", -1, "Could you repeat that?"))
        result = engine.execute(make_ctx("conv_1", "hmm"))

        assert result.current_node_id == "conv_1"
        assert result.flow_completed is False
        assert "remain" in result.tool_call("transition").result["instructions"].lower()

    def test_option_to_stop_completes_flow(self, make_engine, make_ctx):
        engine, _ = make_engine(option_turn("conv_2", 0, "Goodbye!"))
        result = engine.execute(make_ctx("conv_2", "that's all"))

        assert result.flow_completed is True
        assert result.current_node_id == "end"
        assert result.next_node_descriptor["type"] == "stop"

    def test_completion_only_when_stop_reached(self, make_engine, make_ctx):
        engine, _ = make_engine(option_turn("conv_1", 0))
        result = engine.execute(make_ctx("conv_1", "I'm Ada"))

        assert result.current_node_id == "conv_2"
        assert result.flow_completed is False


# ============================================================================
# Turn-fatal Faults
# ============================================================================


class TestTurnFatalFaults:

    def test_invalid_option_aborts_without_mutation(self, make_engine, make_ctx):
        engine, llm = make_engine(option_turn("conv_1", 5))
        history = prior_history(1)
        memory = MemoryState(turn_index=1)
        ctx = make_ctx("conv_1", "pick five", history=history, memory=memory)

        with pytest.raises(TransitionArgumentsError) as exc:
            engine.execute(ctx)

        assert exc.value.failure_code is FailureCode.TOOL_ARGS_MISMATCH
        assert ctx.history == history
        assert ctx.memory.turn_index == 1
        # memory curation never ran
        assert len(llm.requests) == len(llm.turn_requests) == 1

    def test_unknown_start_node(self, make_engine, make_ctx):
        engine, llm = make_engine(start_turn())
        with pytest.raises(NodeResolutionError):
            engine.execute(make_ctx("nowhere"))
        assert llm.requests == []

    def test_stop_node_as_turn_start(self, make_engine, make_ctx):
        engine, llm = make_engine(start_turn())
        with pytest.raises(NodeResolutionError):
            engine.execute(make_ctx("end"))
        assert llm.requests == []

    def test_missing_transition_call(self, make_engine, make_ctx):
        engine, _ = make_engine([text_reply("Hello without transitioning")])
        with pytest.raises(TransitionNotCalledError) as exc:
            engine.execute(make_ctx("start"))
        assert exc.value.failure_code is FailureCode.ENGINE_ERROR

    def test_non_convergence(self, make_engine, make_ctx):
        def loop_forever(request):
            if request.tool_choice == "transition":
                return tool_reply("transition", {"current_node_id": "start", "next_node_id": "conv_1"})
            return tool_reply("get_full_history", {})

        engine, llm = make_engine(loop_forever)
        with pytest.raises(ToolLoopNonConvergence) as exc:
            engine.execute(make_ctx("start"))

        assert exc.value.failure_code is FailureCode.ENGINE_ERROR
        assert len(llm.turn_requests) == engine.config.max_tool_iterations

    def test_reserved_retrieval_tool_name(self, make_engine):
        clash = Tool(name="transition", description="", handler=lambda a: a, input_schema={})
        with pytest.raises(ValueError, match="reserved"):
            make_engine(retrieval_tools=[clash])


# ============================================================================
# State Threading
# ============================================================================


class TestStateThreading:

    def test_history_and_turn_index(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn())
        result = engine.execute(make_ctx("start", "Hi"))

        assert [(e.role, e.content, e.turn_index) for e in result.history] == [
            ("user", "Hi", 0),
            ("assistant", "Welcome! What's your name?", 0),
        ]
        assert result.memory.turn_index == 1

    def test_history_is_append_only(self, make_engine, make_ctx):
        history = prior_history(2)
        engine, _ = make_engine(option_turn("conv_1", -1))
        result = engine.execute(
            make_ctx("conv_1", "again", history=history, memory=MemoryState(turn_index=2))
        )

        assert result.history[:4] == history
        assert result.history[4].turn_index == 2
        assert result.memory.turn_index == 3

    def test_two_turns_threaded(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn() + option_turn("conv_1", 0))
        first = engine.execute(make_ctx("start", "Hi"))

        second = engine.execute(
            make_ctx(
                first.current_node_id,
                "I'm Ada",
                history=first.history,
                memory=first.memory,
            )
        )
        assert second.current_node_id == "conv_2"
        assert second.memory.turn_index == 2
        assert [e.turn_index for e in second.history] == [0, 0, 1, 1]

    def test_trace_only_when_tracing(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn())
        result = engine.execute(make_ctx("start"))

        assert result.history[-1].trace is None
        assert len(result.tool_calls) == 1

    def test_retrieval_tool_is_offered_and_recorded(self, make_engine, make_ctx):
        kb = Tool(
            name="kb_search",
            description="Search",
            handler=lambda args: {"answer": "We open at nine."},
            input_schema={"query": "string"},
        )
        script = [
            tool_reply("transition", {"current_node_id": "conv_1", "option_id": -1}),
            tool_reply("kb_search", {"query": "opening hours"}),
            text_reply("We open at nine."),
        ]
        engine, llm = make_engine(script, retrieval_tools=[kb])
        result = engine.execute(make_ctx("conv_1", "When do you open?"))

        assert llm.turn_requests[0].tool_names == ["transition", "get_full_history", "kb_search"]
        assert result.tool_call("kb_search").result == {"answer": "We open at nine."}


# ============================================================================
# Dry Run
# ============================================================================


class TestDryRun:

    def test_memory_untouched(self, make_engine, make_ctx):
        memory = MemoryState(
            turn_index=5,
            facts={"name": FactRecord(key="name", value="Ada", source_turn_index=1)},
        )
        engine, llm = make_engine(start_turn(), curator=curator(facts=[{"key": "name", "value": "Bob"}]))
        result = engine.execute(make_ctx("start", "Hi", memory=memory, dry_run=True))

        assert result.memory is memory
        assert result.memory.turn_index == 5
        with pytest.raises(TypeError):
            result.memory.facts["name"] = FactRecord(key="name", value="Bob", source_turn_index=5)
        assert result.memory_report is None
        assert len(llm.requests) == len(llm.turn_requests)

    def test_outcome_still_computed(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn())
        result = engine.execute(make_ctx("start", "Hi", dry_run=True))

        assert result.current_node_id == "conv_1"
        assert len(result.history) == 2


# ============================================================================
# Deterministic Variant
# ============================================================================


class TestExecuteTest:

    def test_deterministic_parameters(self, make_engine, make_ctx):
        engine, llm = make_engine(start_turn())
        engine.execute_test(make_ctx("start"), seed=42)

        for request in llm.requests:
            assert request.params.temperature == 0.0
            assert request.params.top_p == 1.0
            assert request.params.seed == 42

    def test_trace_attached(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn())
        result = engine.execute_test(make_ctx("start"), seed=1)

        trace = result.history[-1].trace
        assert [r.name for r in trace] == ["transition"]

    def test_tracing_can_be_disabled(self, make_engine, make_ctx):
        engine, _ = make_engine(start_turn())
        result = engine.execute_test(make_ctx("start"), enable_tracing=False)
        assert result.history[-1].trace is None

    def test_identical_inputs_identical_output(self, make_engine, make_ctx):
        facts = [{"key": "name", "value": "Ada"}]
        outputs = []

        for _ in range(2):
            engine, _ = make_engine(option_turn("conv_1", 0, "Nice to meet you, Ada."), curator=curator(facts))
            ctx = make_ctx("conv_1", "I'm Ada", history=prior_history(2), memory=MemoryState(turn_index=2))
            result = engine.execute_test(ctx, seed=7)
            outputs.append(json.dumps(result.to_dict(), sort_keys=True))

        assert outputs[0] == outputs[1]


# ============================================================================
# Memory Curation through the Engine
# ============================================================================


class TestMemoryCuration:

    def test_facts_added_are_reported(self, make_engine, make_ctx):
        engine, _ = make_engine(
            option_turn("conv_1", 0),
            curator=curator(facts=[{"key": "name", "value": "Ada"}]),
        )
        result = engine.execute(make_ctx("conv_1", "I'm Ada"))

        assert result.facts_added == ("name",)
        assert result.memory.facts["name"].value == "Ada"
        assert result.memory.facts["name"].source_turn_index == 0

    def test_fact_correction_reported_as_update(self, make_engine, make_ctx):
        memory = MemoryState(
            turn_index=1,
            facts={"name": FactRecord(key="name", value="Ada", source_turn_index=0)},
        )
        engine, _ = make_engine(
            option_turn("conv_2", -1),
            curator=curator(facts=[{"key": "name", "value": "Adele"}]),
        )
        result = engine.execute(make_ctx("conv_2", "Actually it's Adele", memory=memory))

        assert result.facts_updated == ("name",)
        assert result.memory.facts["name"].provenance == "corrected"
        assert len(result.memory.facts) == 1

    def test_summary_appended_at_threshold(self, make_engine, make_ctx):
        engine, _ = make_engine(option_turn("conv_1", -1), curator=curator())
        ctx = make_ctx("conv_1", "third", history=prior_history(2), memory=MemoryState(turn_index=2))
        result = engine.execute(ctx)

        chunks = result.memory.summary.chunks_at(0)
        assert [c.span for c in chunks] == [(0, 3)]
        assert result.memory_report.outcome("summarize").status == "applied"

    def test_stage_failure_does_not_abort_turn(self, make_engine, make_ctx):
        def flaky(request):
            if "extract durable facts" in request.messages[0]["content"]:
                return text_reply("I could not find any JSON here")
            return text_reply("Summary text.")

        engine, _ = make_engine(option_turn("conv_1", -1), curator=flaky)
        ctx = make_ctx("conv_1", "third", history=prior_history(2), memory=MemoryState(turn_index=2))
        result = engine.execute(ctx)

        report = result.memory_report
        assert report.outcome("facts").status == "failed"
        assert report.outcome("summarize").status == "applied"
        assert result.memory.facts == {}
        assert result.memory.turn_index == 3
        assert result.current_node_id == "conv_1"

    def test_disabled_pipeline_skips_every_stage(self, make_engine, make_ctx):
        engine, llm = make_engine(start_turn())
        ctx = make_ctx("start", memory_pipeline=MemoryPipelineSettings(enabled=False))
        result = engine.execute(ctx)

        assert {o.status for o in result.memory_report.outcomes} == {"skipped"}
        assert result.memory.turn_index == 1
        assert len(llm.requests) == len(llm.turn_requests)
