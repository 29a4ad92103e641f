from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


STAY_OPTION_ID = -1
"""Reserved option id meaning "remain in the current node"."""


class NodeType(str, Enum):
    START = "start"
    CONVERSATION = "conversation"
    STOP = "stop"


@dataclass(frozen=True)
class FlowOption:
    """
    A declared exit of a Conversation node.

    The model selects an option by its integer id; the option names the
    node the conversation moves to.
    """

    option_id: int
    label: str
    next_node_id: str

    def __post_init__(self):
        if isinstance(self.option_id, bool) or not isinstance(self.option_id, int):
            raise TypeError("option_id must be an integer.")

        if self.option_id < 0:
            raise ValueError(
                f"option_id must be >= 0 ({STAY_OPTION_ID} is reserved)."
            )

        if not self.next_node_id or not isinstance(self.next_node_id, str):
            raise ValueError("Option next_node_id must be a non-empty string.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "option_id": self.option_id,
            "label": self.label,
            "next_node_id": self.next_node_id,
        }


@dataclass(frozen=True)
class FlowNode:
    """
    Immutable node of a flow graph.

    Architectural Role
    ------------------
    FlowGraph → PromptAssembler (node section)
    FlowGraph → NodeTransitionProcessor (legal transitions)

    Attributes
    ----------
    id : str
        Unique node identifier.

    type : NodeType
        Start, Conversation or Stop.

    prompt : str
        Node instructions. May reference known facts as ``$key``.

    options : Tuple[FlowOption, ...]
        Ordered exits. Only Conversation nodes declare options.

    edges : Tuple[str, ...]
        Optional allow-list of targets for a Start node. Empty means
        any non-Start node of the graph.
    """

    id: str
    type: NodeType
    prompt: str = ""
    options: Tuple[FlowOption, ...] = field(default_factory=tuple)
    edges: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Node id must be a non-empty string.")

        # Accept raw strings from JSON documents
        object.__setattr__(self, "type", NodeType(self.type))
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "edges", tuple(self.edges))

        if self.options and self.type is not NodeType.CONVERSATION:
            raise ValueError(
                f"Node '{self.id}': only conversation nodes may declare options."
            )

        if self.edges and self.type is not NodeType.START:
            raise ValueError(
                f"Node '{self.id}': only start nodes may declare edges."
            )

        ids = [o.option_id for o in self.options]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Node '{self.id}': duplicate option ids {ids}.")

    # ------------------------------------------------------------------
    # Derived Properties
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.type is NodeType.STOP

    def option(self, option_id: int) -> Optional[FlowOption]:
        for opt in self.options:
            if opt.option_id == option_id:
                return opt
        return None

    # ------------------------------------------------------------------
    # Serialization Boundary
    # ------------------------------------------------------------------

    def descriptor(self) -> Dict[str, Any]:
        """JSON-safe description handed back to the model and the caller."""
        return {
            "id": self.id,
            "type": self.type.value,
            "prompt": self.prompt,
            "options": [o.to_dict() for o in self.options],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowNode":
        return cls(
            id=data["id"],
            type=NodeType(data["type"]),
            prompt=data.get("prompt", ""),
            options=tuple(
                FlowOption(
                    option_id=o["option_id"],
                    label=o.get("label", ""),
                    next_node_id=o["next_node_id"],
                )
                for o in data.get("options", [])
            ),
            edges=tuple(data.get("edges", [])),
        )
