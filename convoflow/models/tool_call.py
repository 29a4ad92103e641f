from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid


@dataclass(frozen=True)
class ToolCall:
    """
    A model-issued request to execute a tool.

    This is the *intent packet* passed from the reasoning model to the
    ToolExecutor. It contains no execution logic, only the declared
    tool name and raw arguments.

    Architectural Role
    ------------------
    LLMClient → ToolCall → ToolExecutor → ToolCallRecord
    """

    name: str
    """Name of the tool to invoke."""

    arguments: Any
    """
    Raw (not yet validated) arguments. A dict, unless the backend
    returned argument text that is not a JSON object.
    """

    id: str = field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")
    """Provider call id, echoed back in the tool-result message."""

    def __repr__(self) -> str:
        return f"ToolCall(id={self.id}, tool='{self.name}')"


@dataclass(frozen=True)
class ToolCallRecord:
    """
    Immutable trace entry of one executed tool call.

    Attributes
    ----------
    name : str
        Tool name as requested by the model.

    args : Dict[str, Any]
        Arguments as requested by the model.

    result : Any
        JSON-safe handler output. None when the call failed.

    latency_ms : int
        Handler execution time in milliseconds (monotonic clock).

    error : Optional[str]
        Error fed back to the model when the call was rejected.
    """

    name: str
    args: Dict[str, Any]
    result: Any
    latency_ms: int
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "args": self.args,
            "result": self.result,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCallRecord":
        return cls(
            name=data["name"],
            args=dict(data.get("args", {})),
            result=data.get("result"),
            latency_ms=int(data.get("latency_ms", 0)),
            error=data.get("error"),
        )
