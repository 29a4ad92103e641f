from __future__ import annotations

import logging
from dataclasses import replace

from ..memory.pipeline import MemoryPipeline
from ..models.execution import ExecutionContext, ExecutionResult, NodeProcessorResult
from ..models.history import HistoryEntry, append_exchange
from .loop import LoopOutcome

logger = logging.getLogger(__name__)


class ExecutionResultBuilder:
    """
    Turns the loop outcome and the applied transition into the next
    immutable state snapshot.

    Steps
    -----
    1. Append the user entry, then the assistant entry.
    2. Increment ``turn_index`` once, unless dry-run.
    3. Move to the transition target, or mark the flow completed when
       a Stop node was reached (``current_node_id`` becomes that node).
    4. Run memory curation, unless dry-run.
    """

    def __init__(self, pipeline: MemoryPipeline) -> None:
        self._pipeline = pipeline

    def build(
        self,
        ctx: ExecutionContext,
        transition: NodeProcessorResult,
        outcome: LoopOutcome,
    ) -> ExecutionResult:

        turn_index = ctx.memory.turn_index
        tracing = ctx.model_params.tracing

        history = append_exchange(
            ctx.history,
            HistoryEntry(
                role="user",
                content=ctx.latest_user_message,
                turn_index=turn_index,
            ),
            HistoryEntry(
                role="assistant",
                content=outcome.final_message,
                turn_index=turn_index,
                trace=outcome.records if tracing else None,
            ),
        )

        if transition.reached_stop:
            current_node_id = transition.next_node_descriptor["id"]
            flow_completed = True
        else:
            current_node_id = transition.next_node_id
            flow_completed = False

        # Dry-run hands the input memory back untouched
        if ctx.dry_run:
            memory = ctx.memory
            report = None
        else:
            memory = replace(ctx.memory, turn_index=turn_index + 1)
            memory, report = self._pipeline.run(
                memory,
                history,
                ctx.memory_pipeline,
                ctx.model_params,
            )

        logger.debug(
            "[RESULT] node=%s | completed=%s | turn_index=%d | dry_run=%s",
            current_node_id,
            flow_completed,
            memory.turn_index,
            ctx.dry_run,
        )

        return ExecutionResult(
            current_node_id=current_node_id,
            history=history,
            memory=memory,
            flow_completed=flow_completed,
            next_node_descriptor=transition.next_node_descriptor,
            tool_calls=outcome.records,
            assistant_message=outcome.final_message,
            memory_report=report,
        )
