from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Literal, Optional, Tuple

from .history import HistoryEntry
from .memory import MemoryState
from .tool_call import ToolCallRecord


MEMORY_STAGES: Tuple[str, ...] = ("facts", "summarize", "resummarize")


# ============================================================
# Engine Inputs
# ============================================================

@dataclass(frozen=True)
class ModelParams:
    """
    Sampling parameters forwarded to the reasoning model.

    ``tracing`` controls whether tool-call traces are attached to the
    assistant history entry and whether prompts are logged at DEBUG.
    """

    temperature: float = 0.7
    top_p: float = 1.0
    seed: Optional[int] = None
    tracing: bool = False

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError("temperature must be within [0, 2].")

        if not 0.0 < self.top_p <= 1.0:
            raise ValueError("top_p must be within (0, 1].")

    @classmethod
    def deterministic(cls, seed: Optional[int] = None, tracing: bool = True) -> "ModelParams":
        """Parameters used by reproducible test runs."""
        return cls(temperature=0.0, top_p=1.0, seed=seed, tracing=tracing)


@dataclass(frozen=True)
class MemoryPipelineSettings:
    """
    Post-turn memory curation switch.

    ``stages`` is an optional allow-list over ``facts``, ``summarize``
    and ``resummarize``. None runs every stage.
    """

    enabled: bool = True
    stages: Optional[FrozenSet[str]] = None

    def __post_init__(self):
        if self.stages is None:
            return

        stages = frozenset(self.stages)
        unknown = sorted(stages - set(MEMORY_STAGES))
        if unknown:
            raise ValueError(f"Unknown memory pipeline stages: {unknown}")
        object.__setattr__(self, "stages", stages)

    def allows(self, stage: str) -> bool:
        return self.enabled and (self.stages is None or stage in self.stages)


@dataclass(frozen=True)
class ExecutionContext:
    """
    Immutable snapshot of everything one turn needs.

    Created fresh by the caller for every call and never retained by
    the engine.
    """

    current_node_id: str
    latest_user_message: str
    history: Tuple[HistoryEntry, ...] = field(default_factory=tuple)
    memory: MemoryState = field(default_factory=MemoryState)
    dry_run: bool = False
    memory_pipeline: MemoryPipelineSettings = field(default_factory=MemoryPipelineSettings)
    model_params: ModelParams = field(default_factory=ModelParams)

    def __post_init__(self):
        if not self.current_node_id:
            raise ValueError("current_node_id is required.")

        if not isinstance(self.latest_user_message, str):
            raise TypeError("latest_user_message must be a string.")

        object.__setattr__(self, "history", tuple(self.history))

    def with_model_params(self, params: ModelParams) -> "ExecutionContext":
        return replace(self, model_params=params)


# ============================================================
# Component Outputs
# ============================================================

@dataclass(frozen=True)
class NodeProcessorResult:
    """
    Outcome of one validated transition.

    ``next_node_id`` is None when the transition reached a Stop node;
    the descriptor then describes that Stop node.
    """

    next_node_id: Optional[str]
    next_node_descriptor: Optional[Dict[str, Any]]
    instructions: str

    @property
    def reached_stop(self) -> bool:
        return self.next_node_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_node_id": self.next_node_id,
            "next_node_descriptor": self.next_node_descriptor,
            "instructions": self.instructions,
        }


StageStatus = Literal["applied", "unchanged", "skipped", "failed"]


@dataclass(frozen=True)
class StageOutcome:
    stage: str
    status: StageStatus
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass(frozen=True)
class PipelineReport:
    """Per-stage outcomes of one memory curation run."""

    outcomes: Tuple[StageOutcome, ...] = field(default_factory=tuple)
    facts_added: Tuple[str, ...] = field(default_factory=tuple)
    facts_updated: Tuple[str, ...] = field(default_factory=tuple)

    def outcome(self, stage: str) -> Optional[StageOutcome]:
        for o in self.outcomes:
            if o.stage == stage:
                return o
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcomes": [
                {"stage": o.stage, "status": o.status, "error": o.error}
                for o in self.outcomes
            ],
            "facts_added": list(self.facts_added),
            "facts_updated": list(self.facts_updated),
        }


# ============================================================
# Engine Output
# ============================================================

@dataclass(frozen=True)
class ExecutionResult:
    """
    New immutable state snapshot plus the trace of one turn.

    Every per-turn expectation of a test specification (next node,
    tool call, facts added or updated) is answerable from this object
    alone.
    """

    current_node_id: str
    history: Tuple[HistoryEntry, ...]
    memory: MemoryState
    flow_completed: bool
    next_node_descriptor: Optional[Dict[str, Any]]
    tool_calls: Tuple[ToolCallRecord, ...]
    assistant_message: str
    memory_report: Optional[PipelineReport] = None

    def tool_call(self, name: str) -> Optional[ToolCallRecord]:
        """First recorded call of the named tool, if any."""
        for record in self.tool_calls:
            if record.name == name:
                return record
        return None

    @property
    def facts_added(self) -> Tuple[str, ...]:
        return self.memory_report.facts_added if self.memory_report else ()

    @property
    def facts_updated(self) -> Tuple[str, ...]:
        return self.memory_report.facts_updated if self.memory_report else ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_node_id": self.current_node_id,
            "history": [e.to_dict() for e in self.history],
            "memory": self.memory.to_dict(),
            "flow_completed": self.flow_completed,
            "next_node_descriptor": self.next_node_descriptor,
            "tool_calls": [r.to_dict() for r in self.tool_calls],
            "assistant_message": self.assistant_message,
            "memory_report": (
                self.memory_report.to_dict() if self.memory_report else None
            ),
        }
