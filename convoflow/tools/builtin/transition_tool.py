from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from convoflow.flow.graph import FlowGraph
from convoflow.flow.processor import NodeTransitionProcessor
from convoflow.flow.transition import TRANSITION_TOOL_NAME, transition_parameters
from convoflow.models.execution import NodeProcessorResult
from convoflow.models.flow import FlowNode, NodeType
from convoflow.tools.schema import Tool

logger = logging.getLogger(__name__)


class TransitionBinding:
    """
    Binds the NodeTransitionProcessor as the ``transition`` tool of one turn.

    The first successful call is authoritative. Later calls in the same
    turn are answered with the already-applied result instead of being
    re-evaluated, so a turn performs at most one node transition.
    """

    def __init__(self, graph: FlowGraph, node: FlowNode) -> None:
        self._graph = graph
        self._node = node
        self._processor = NodeTransitionProcessor(graph)
        self._result: Optional[NodeProcessorResult] = None

    @property
    def result(self) -> Optional[NodeProcessorResult]:
        return self._result

    def handle(self, args: Dict[str, Any]) -> Dict[str, Any]:

        if self._result is not None:
            logger.warning(
                "[TRANSITION] Repeated transition call ignored | node=%s",
                self._node.id,
            )
            return {
                "status": "already_applied",
                **self._result.to_dict(),
            }

        # Validation faults raise and abort the turn
        self._result = self._processor.process(self._node.id, args)

        return {"status": "applied", **self._result.to_dict()}

    def tool(self) -> Tool:
        if self._node.type is NodeType.START:
            targets = self._graph.start_targets(self._node)
        else:
            targets = [o.next_node_id for o in self._node.options]

        return Tool(
            name=TRANSITION_TOOL_NAME,
            description=(
                "Record the flow transition for this turn. Must be called "
                "first, before answering the user."
            ),
            handler=self.handle,
            input_schema={},
            parameters=transition_parameters(self._node, targets),
        )
