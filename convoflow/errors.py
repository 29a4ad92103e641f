"""
Failure taxonomy of the turn engine.

Two disjoint fault classes exist:

* turn-fatal faults (``EngineError`` and subclasses) abort ``execute``
  and reach the caller; no partial result is ever returned.
* best-effort faults (``MemoryStageError`` and subclasses) are raised
  inside a memory curation stage and converted to a failed
  ``StageOutcome``; the turn still completes.
"""

from enum import Enum
from typing import Any, Dict, Optional


class FailureCode(str, Enum):
    NODE_MISMATCH = "NODE_MISMATCH"
    TOOL_ARGS_MISMATCH = "TOOL_ARGS_MISMATCH"
    ENGINE_ERROR = "ENGINE_ERROR"
    TIMEOUT = "TIMEOUT"
    # Evaluator-side classifications over engine output; never raised here.
    ASSISTANT_CONTENT = "ASSISTANT_CONTENT"
    FACT_DRIFT = "FACT_DRIFT"
    QUALITY_JUDGE_FAIL = "QUALITY_JUDGE_FAIL"


# ============================================================
# Turn-fatal faults
# ============================================================

class EngineError(Exception):
    """Base class of every fault that aborts a turn."""

    failure_code: FailureCode = FailureCode.ENGINE_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "failure_code": self.failure_code.value,
            "error": str(self),
            "details": self.details,
        }


class NodeResolutionError(EngineError):
    """Unknown node id, or a node that cannot start a turn."""


class TransitionArgumentsError(EngineError):
    """Transition arguments do not fit the current node."""

    failure_code = FailureCode.TOOL_ARGS_MISMATCH


class TransitionNotCalledError(EngineError):
    """The pinned first model call did not request the transition tool."""


class ToolLoopNonConvergence(EngineError):
    """The model kept calling tools past the iteration bound."""


class ModelTransportError(EngineError):
    """The reasoning-model backend failed or answered malformed data."""


class ModelTimeoutError(ModelTransportError, TimeoutError):
    failure_code = FailureCode.TIMEOUT


# ============================================================
# Best-effort faults
# ============================================================

class MemoryStageError(Exception):
    """Raised inside a memory curation stage. Never escapes the pipeline."""


class MalformedModelOutput(MemoryStageError):
    """A curation model call returned output that could not be parsed."""
