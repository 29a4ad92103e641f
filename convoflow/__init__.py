"""
convoflow: a stateless turn-cycle engine for guided conversation flows.
"""

from .app import ConvoFlowApp
from .config import EngineConfig
from .engine.core import TurnEngine
from .flow.graph import FlowGraph
from .models import ExecutionContext, ExecutionResult, MemoryState

__all__ = [
    "ConvoFlowApp",
    "EngineConfig",
    "TurnEngine",
    "FlowGraph",
    "ExecutionContext",
    "ExecutionResult",
    "MemoryState",
]
