from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from ..errors import ToolLoopNonConvergence, TransitionNotCalledError
from ..flow.transition import TRANSITION_TOOL_NAME
from ..models.execution import ModelParams
from ..models.tool_call import ToolCallRecord
from ..tools.executor import ToolExecutor
from .llm.llm_client import LLMClient, ModelResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoopOutcome:
    final_message: str
    records: Tuple[ToolCallRecord, ...]
    iterations: int


class ToolInvocationLoop:
    """
    Drives the reasoning model until it produces a plain reply.

    Contract
    --------
    • The first model call pins ``tool_choice`` to the transition tool;
      a first reply that does not start with that call is a fault.
    • After the first exchange the model is free to call any offered
      tool or answer.
    • At most ``max_iterations`` model calls are made. Exceeding the
      bound without a plain reply raises ToolLoopNonConvergence.

    Steps are strictly sequential: every tool result is appended to the
    conversation before the next model call.
    """

    def __init__(self, llm: LLMClient, max_iterations: int) -> None:
        if max_iterations < 2:
            raise ValueError("max_iterations must be >= 2")
        self._llm = llm
        self._max_iterations = max_iterations

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    def run(
        self,
        messages: List[Dict[str, Any]],
        executor: ToolExecutor,
        params: ModelParams,
    ) -> LoopOutcome:

        conversation = list(messages)
        manifest = executor.registry.function_manifest()
        records: List[ToolCallRecord] = []

        for iteration in range(1, self._max_iterations + 1):

            pinned = TRANSITION_TOOL_NAME if iteration == 1 else None

            if params.tracing:
                logger.debug(
                    "[TOOL LOOP] Step %d request | pinned=%s | messages=%s",
                    iteration,
                    pinned,
                    conversation,
                )

            response = self._llm.complete(
                conversation,
                tools=manifest,
                tool_choice=pinned,
                params=params,
            )

            if iteration == 1:
                self._check_first_call(response)

            if not response.is_tool_call:
                logger.info(
                    "[TOOL LOOP] Converged | iterations=%d | tool_calls=%d",
                    iteration,
                    len(records),
                )
                return LoopOutcome(
                    final_message=response.content,
                    records=tuple(records),
                    iterations=iteration,
                )

            conversation.append(response.to_message())

            for call in response.tool_calls:
                logger.info("[TOOL LOOP] Step %d | tool=%s", iteration, call.name)

                record = executor.execute(call)
                records.append(record)

                conversation.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "name": call.name,
                    "content": json.dumps(executor.describe(record), default=str),
                })

        logger.error(
            "[TOOL LOOP] No plain reply after %d iterations | calls=%s",
            self._max_iterations,
            [r.name for r in records],
        )
        raise ToolLoopNonConvergence(
            f"Tool loop did not converge within {self._max_iterations} model calls",
            {
                "max_iterations": self._max_iterations,
                "tool_calls": [r.name for r in records],
            },
        )

    @staticmethod
    def _check_first_call(response: ModelResponse) -> None:
        first = response.tool_calls[0].name if response.tool_calls else None

        if first != TRANSITION_TOOL_NAME:
            logger.error(
                "[TOOL LOOP] Mandatory transition call missing | first=%s",
                first,
            )
            raise TransitionNotCalledError(
                f"First model call must invoke '{TRANSITION_TOOL_NAME}', got "
                + (f"'{first}'" if first else "a plain reply"),
                {"first_call": first},
            )
