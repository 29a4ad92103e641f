"""
Core data models for the convoflow turn engine.

These frozen dataclasses are the immutable snapshots that move between
the engine layers (Prompt, Tool Loop, Transition, Memory) and across
the caller boundary.
"""

from .flow import FlowNode, FlowOption, NodeType, STAY_OPTION_ID
from .history import HistoryEntry
from .memory import FactRecord, MemoryState, Summary, SummaryChunk
from .tool_call import ToolCall, ToolCallRecord
from .execution import (
    ExecutionContext,
    ExecutionResult,
    MemoryPipelineSettings,
    ModelParams,
    NodeProcessorResult,
    PipelineReport,
    StageOutcome,
)

__all__ = [
    "FlowNode",
    "FlowOption",
    "NodeType",
    "STAY_OPTION_ID",
    "HistoryEntry",
    "FactRecord",
    "MemoryState",
    "Summary",
    "SummaryChunk",
    "ToolCall",
    "ToolCallRecord",
    "ExecutionContext",
    "ExecutionResult",
    "MemoryPipelineSettings",
    "ModelParams",
    "NodeProcessorResult",
    "PipelineReport",
    "StageOutcome",
]
