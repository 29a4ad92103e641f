from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from ..errors import NodeResolutionError
from ..models.flow import FlowNode, NodeType

logger = logging.getLogger(__name__)


class FlowGraph:
    """
    Static definition of the conversational nodes and their transitions.

    The graph is read-only to the engine. It is validated once at
    construction so that every transition target named by an option or
    a Start edge resolves to a node.
    """

    def __init__(self, nodes: Iterable[FlowNode]) -> None:
        by_id: Dict[str, FlowNode] = {}

        for node in nodes:
            if node.id in by_id:
                raise ValueError(f"Duplicate flow node id: '{node.id}'")
            by_id[node.id] = node

        self._nodes: Mapping[str, FlowNode] = by_id
        self._validate()

        logger.info(
            "[FLOW GRAPH] Loaded | nodes=%d | start=%s",
            len(self._nodes),
            self.start_node.id,
        )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowGraph":
        nodes = data.get("nodes")
        if not isinstance(nodes, list) or not nodes:
            raise ValueError("Flow definition requires a non-empty 'nodes' list.")
        return cls(FlowNode.from_dict(n) for n in nodes)

    @classmethod
    def load(cls, path: str | Path) -> "FlowGraph":
        with Path(path).open(encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def _validate(self) -> None:
        starts = [n.id for n in self._nodes.values() if n.type is NodeType.START]
        if len(starts) != 1:
            raise ValueError(f"Flow graph needs exactly one start node, found {starts}")

        for node in self._nodes.values():
            targets = [o.next_node_id for o in node.options] + list(node.edges)
            missing = [t for t in targets if t not in self._nodes]
            if missing:
                raise ValueError(
                    f"Node '{node.id}' references unknown nodes: {missing}"
                )

            for target in targets:
                if self._nodes[target].type is NodeType.START:
                    raise ValueError(
                        f"Node '{node.id}' cannot transition to start node '{target}'"
                    )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, node_id: str) -> FlowNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            logger.error(
                "[FLOW GRAPH] Unknown node: %s | available=%s",
                node_id,
                sorted(self._nodes),
            )
            raise NodeResolutionError(
                f"Unknown flow node '{node_id}'",
                {"node_id": node_id},
            ) from None

    def resolve_turn_start(self, node_id: str) -> FlowNode:
        """
        Resolve the node a turn starts in.

        A Stop node is terminal: starting a turn there is a validation
        fault, not a silent no-op.
        """
        node = self.get(node_id)
        if node.is_terminal:
            raise NodeResolutionError(
                f"Cannot execute a turn from stop node '{node_id}'",
                {"node_id": node_id, "node_type": node.type.value},
            )
        return node

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    @property
    def start_node(self) -> FlowNode:
        return next(n for n in self._nodes.values() if n.type is NodeType.START)

    def start_targets(self, node: FlowNode) -> List[str]:
        """Legal targets of a Start node, in declaration order."""
        if node.edges:
            return list(node.edges)
        return [
            n.id for n in self._nodes.values()
            if n.type is not NodeType.START
        ]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
