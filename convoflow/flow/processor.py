from __future__ import annotations

import logging
from typing import Any, Dict

from ..errors import TransitionArgumentsError
from ..models.execution import NodeProcessorResult
from ..models.flow import FlowNode, NodeType
from .graph import FlowGraph
from .transition import (
    ConversationTransitionArgs,
    StartTransitionArgs,
    parse_transition_args,
)

logger = logging.getLogger(__name__)


class NodeTransitionProcessor:
    """
    Validates and applies transition payloads against a FlowGraph.

    State machine over node types:

        Start         → next_node_id (any legal non-Start target)
        Conversation  → option_id (declared option) | -1 (remain)
        Stop          → never a turn start; only a transition target

    Every validation fault is turn-fatal and raised to the caller.
    """

    def __init__(self, graph: FlowGraph) -> None:
        self._graph = graph

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, current_node_id: str, args: Dict[str, Any]) -> NodeProcessorResult:

        node = self._graph.resolve_turn_start(current_node_id)
        parsed = parse_transition_args(node, args)

        if parsed.current_node_id != node.id:
            logger.error(
                "[TRANSITION] Node mismatch | engine=%s | model=%s",
                node.id,
                parsed.current_node_id,
            )
            raise TransitionArgumentsError(
                f"Transition issued for node '{parsed.current_node_id}' "
                f"but the conversation is in '{node.id}'",
                {"node_id": node.id, "args": args},
            )

        if isinstance(parsed, StartTransitionArgs):
            result = self._from_start(node, parsed)
        else:
            result = self._from_conversation(node, parsed)

        logger.info(
            "[TRANSITION] %s -> %s",
            node.id,
            result.next_node_id if not result.reached_stop else "<stop>",
        )
        return result

    # ------------------------------------------------------------------
    # Node Types
    # ------------------------------------------------------------------

    def _from_start(self, node: FlowNode, args: StartTransitionArgs) -> NodeProcessorResult:

        if not self._graph.has_node(args.next_node_id):
            raise TransitionArgumentsError(
                f"Unknown next_node_id '{args.next_node_id}'",
                {"node_id": node.id, "next_node_id": args.next_node_id},
            )

        if args.next_node_id not in self._graph.start_targets(node):
            raise TransitionArgumentsError(
                f"'{args.next_node_id}' is not a legal target of start node '{node.id}'",
                {"node_id": node.id, "next_node_id": args.next_node_id},
            )

        return self._enter(self._graph.get(args.next_node_id))

    def _from_conversation(
        self,
        node: FlowNode,
        args: ConversationTransitionArgs,
    ) -> NodeProcessorResult:

        if args.stays:
            return NodeProcessorResult(
                next_node_id=node.id,
                next_node_descriptor=node.descriptor(),
                instructions=(
                    f"Remain in node '{node.id}'. Continue following its "
                    f"instructions: {node.prompt}".strip()
                ),
            )

        option = node.option(args.option_id)
        if option is None:
            raise TransitionArgumentsError(
                f"Invalid option_id {args.option_id} for node '{node.id}'",
                {
                    "node_id": node.id,
                    "option_id": args.option_id,
                    "declared": [o.option_id for o in node.options],
                },
            )

        return self._enter(self._graph.get(option.next_node_id))

    def _enter(self, target: FlowNode) -> NodeProcessorResult:

        if target.type is NodeType.STOP:
            return NodeProcessorResult(
                next_node_id=None,
                next_node_descriptor=target.descriptor(),
                instructions=(
                    "The conversation flow is complete. Close the conversation "
                    f"politely. {target.prompt}".strip()
                ),
            )

        return NodeProcessorResult(
            next_node_id=target.id,
            next_node_descriptor=target.descriptor(),
            instructions=f"Move to node '{target.id}': {target.prompt}".strip(),
        )
