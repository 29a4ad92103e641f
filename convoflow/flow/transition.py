"""
Transition tool arguments, one variant per node type.

The transition tool's argument shape depends on the node the turn runs
in. Each variant owns its required-field set, its parser and the JSON
schema offered to the model; dispatch is keyed by ``NodeType``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple, Type, Union

from ..errors import NodeResolutionError, TransitionArgumentsError
from ..models.flow import FlowNode, NodeType, STAY_OPTION_ID

TRANSITION_TOOL_NAME = "transition"


def _check_fields(node: FlowNode, args: Any, required: Tuple[str, ...]) -> None:
    if not isinstance(args, dict):
        raise TransitionArgumentsError(
            "Transition arguments must be a JSON object.",
            {"node_id": node.id, "args": args},
        )

    missing = [k for k in required if k not in args]
    if missing:
        raise TransitionArgumentsError(
            f"{node.type.value} node '{node.id}' requires {list(required)}; missing {missing}",
            {"node_id": node.id, "args": args},
        )

    extra = sorted(k for k in args if k not in required)
    if extra:
        raise TransitionArgumentsError(
            f"Unexpected transition arguments for {node.type.value} node '{node.id}': {extra}",
            {"node_id": node.id, "args": args},
        )

    if not isinstance(args["current_node_id"], str):
        raise TransitionArgumentsError(
            "current_node_id must be a string.",
            {"node_id": node.id, "args": args},
        )


@dataclass(frozen=True)
class StartTransitionArgs:
    """Start node: the model names the node to move to."""

    current_node_id: str
    next_node_id: str

    REQUIRED = ("current_node_id", "next_node_id")

    @classmethod
    def parse(cls, node: FlowNode, args: Any) -> "StartTransitionArgs":
        _check_fields(node, args, cls.REQUIRED)

        if not isinstance(args["next_node_id"], str) or not args["next_node_id"]:
            raise TransitionArgumentsError(
                "next_node_id must be a non-empty string.",
                {"node_id": node.id, "args": args},
            )

        return cls(
            current_node_id=args["current_node_id"],
            next_node_id=args["next_node_id"],
        )

    @staticmethod
    def json_schema(node: FlowNode, targets: list) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "current_node_id": {"type": "string", "enum": [node.id]},
                "next_node_id": {
                    "type": "string",
                    "enum": list(targets),
                    "description": "Node the conversation moves to.",
                },
            },
            "required": list(StartTransitionArgs.REQUIRED),
            "additionalProperties": False,
        }


@dataclass(frozen=True)
class ConversationTransitionArgs:
    """Conversation node: the model selects a declared option, or stays."""

    current_node_id: str
    option_id: int

    REQUIRED = ("current_node_id", "option_id")

    @property
    def stays(self) -> bool:
        return self.option_id == STAY_OPTION_ID

    @classmethod
    def parse(cls, node: FlowNode, args: Any) -> "ConversationTransitionArgs":
        _check_fields(node, args, cls.REQUIRED)

        raw = args["option_id"]

        # Some backends serialize integers as strings
        if isinstance(raw, str) and raw.lstrip("-").isdigit():
            raw = int(raw)

        if isinstance(raw, bool) or not isinstance(raw, int):
            raise TransitionArgumentsError(
                f"option_id must be an integer, got {type(raw).__name__}",
                {"node_id": node.id, "args": args},
            )

        return cls(current_node_id=args["current_node_id"], option_id=raw)

    @staticmethod
    def json_schema(node: FlowNode, targets: list) -> Dict[str, Any]:
        choices = "; ".join(
            f"{o.option_id} = {o.label}" for o in node.options
        )
        return {
            "type": "object",
            "properties": {
                "current_node_id": {"type": "string", "enum": [node.id]},
                "option_id": {
                    "type": "integer",
                    "enum": [STAY_OPTION_ID] + [o.option_id for o in node.options],
                    "description": (
                        f"{STAY_OPTION_ID} = remain in this node"
                        + (f"; {choices}" if choices else "")
                    ),
                },
            },
            "required": list(ConversationTransitionArgs.REQUIRED),
            "additionalProperties": False,
        }


TransitionArgs = Union[StartTransitionArgs, ConversationTransitionArgs]

VARIANTS: Dict[NodeType, Type] = {
    NodeType.START: StartTransitionArgs,
    NodeType.CONVERSATION: ConversationTransitionArgs,
}


def variant_for(node: FlowNode) -> Type:
    try:
        return VARIANTS[node.type]
    except KeyError:
        raise NodeResolutionError(
            f"Node '{node.id}' of type {node.type.value} accepts no transition",
            {"node_id": node.id},
        ) from None


def parse_transition_args(node: FlowNode, args: Any) -> TransitionArgs:
    return variant_for(node).parse(node, args)


def transition_parameters(node: FlowNode, targets: list) -> Dict[str, Any]:
    """JSON schema of the transition tool for a turn running in ``node``."""
    return variant_for(node).json_schema(node, targets)
