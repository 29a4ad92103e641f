"""
Flow graph definition and the node transition state machine.
"""

from .graph import FlowGraph
from .processor import NodeTransitionProcessor
from .transition import TRANSITION_TOOL_NAME, parse_transition_args, transition_parameters

__all__ = [
    "FlowGraph",
    "NodeTransitionProcessor",
    "TRANSITION_TOOL_NAME",
    "parse_transition_args",
    "transition_parameters",
]
