from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional

from ..config import EngineConfig
from ..errors import EngineError, TransitionNotCalledError
from ..flow.graph import FlowGraph
from ..flow.transition import TRANSITION_TOOL_NAME
from ..memory.pipeline import MemoryPipeline
from ..models.execution import ExecutionContext, ExecutionResult, ModelParams
from ..prompt.assembler import PromptAssembler
from ..tools.builtin.history_tool import HISTORY_TOOL_NAME, history_tool
from ..tools.builtin.transition_tool import TransitionBinding
from ..tools.executor import ToolExecutor
from ..tools.schema import Tool
from .llm.llm_client import LLMClient
from .loop import ToolInvocationLoop
from .result_builder import ExecutionResultBuilder

logger = logging.getLogger(__name__)

RESERVED_TOOL_NAMES = frozenset({TRANSITION_TOOL_NAME, HISTORY_TOOL_NAME})


class TurnEngine:
    """
    Stateless turn-cycle engine.

    Resolves exactly one user turn against a flow graph:

        ExecutionContext
            → PromptAssembler
            → ToolInvocationLoop (transition tool first)
            → ExecutionResultBuilder (+ memory curation)
            → ExecutionResult

    The engine only holds immutable collaborators (graph, model client,
    retrieval tools, config). All conversation state arrives in the
    context and leaves in the result, so one instance can serve any
    number of conversations concurrently.

    Failure model
    -------------
    Any EngineError aborts the call; nothing partial is returned.
    Memory curation failures never abort a turn.
    """

    def __init__(
        self,
        graph: FlowGraph,
        llm: LLMClient,
        retrieval_tools: Iterable[Tool] = (),
        config: Optional[EngineConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:

        self._graph = graph
        self._llm = llm
        self._retrieval_tools = tuple(retrieval_tools)
        self._config = config or EngineConfig()
        self._clock = clock or time.monotonic

        clashing = sorted(
            t.name for t in self._retrieval_tools if t.name in RESERVED_TOOL_NAMES
        )
        if clashing:
            raise ValueError(f"Retrieval tools use reserved names: {clashing}")

        self._assembler = PromptAssembler(
            history_window_turns=self._config.history_window_turns,
            history_token_budget=self._config.history_token_budget,
        )
        self._loop = ToolInvocationLoop(llm, self._config.max_tool_iterations)
        self._builder = ExecutionResultBuilder(MemoryPipeline(llm, self._config))

    @property
    def graph(self) -> FlowGraph:
        return self._graph

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ============================================================
    # PUBLIC ENTRY POINTS
    # ============================================================

    def execute(self, ctx: ExecutionContext) -> ExecutionResult:

        start = self._clock()
        logger.info(
            "[TURN] Start | node=%s | turn_index=%d | dry_run=%s",
            ctx.current_node_id,
            ctx.memory.turn_index,
            ctx.dry_run,
        )

        try:
            result = self._run_turn(ctx)
        except EngineError as e:
            logger.error(
                "[TURN] Aborted | node=%s | code=%s | %s",
                ctx.current_node_id,
                e.failure_code.value,
                e,
            )
            raise

        logger.info(
            "[TURN] Done | %s -> %s | completed=%s | tool_calls=%d | %.2fs",
            ctx.current_node_id,
            result.current_node_id,
            result.flow_completed,
            len(result.tool_calls),
            self._clock() - start,
        )
        return result

    def execute_test(
        self,
        ctx: ExecutionContext,
        seed: Optional[int] = None,
        enable_tracing: bool = True,
    ) -> ExecutionResult:
        """
        Reproducible variant of ``execute``.

        Same contract; the model is called with temperature 0, top_p 1
        and the given seed.
        """
        params = ModelParams.deterministic(seed=seed, tracing=enable_tracing)
        return self.execute(ctx.with_model_params(params))

    # ============================================================
    # TURN PIPELINE
    # ============================================================

    def _run_turn(self, ctx: ExecutionContext) -> ExecutionResult:

        node = self._graph.resolve_turn_start(ctx.current_node_id)

        # Per-turn binding; the engine itself keeps no turn state
        binding = TransitionBinding(self._graph, node)
        tools = [binding.tool(), history_tool(ctx.history), *self._retrieval_tools]

        prompt = self._assembler.assemble(
            node=node,
            facts=ctx.memory.facts,
            summary=ctx.memory.summary,
            history=ctx.history,
            user_message=ctx.latest_user_message,
            tools=tools,
        )

        executor = ToolExecutor(prompt.registry, clock=self._clock)
        outcome = self._loop.run(prompt.messages, executor, ctx.model_params)

        if binding.result is None:
            failure = next(
                (r.error for r in outcome.records if r.name == TRANSITION_TOOL_NAME),
                None,
            )
            raise TransitionNotCalledError(
                "Turn finished without an applied transition",
                {"node_id": node.id, "error": failure},
            )

        return self._builder.build(ctx, binding.result, outcome)
