from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional, Sequence, Tuple

from .tool_call import ToolCallRecord


Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class HistoryEntry:
    """
    One message of the canonical, unsummarized conversation record.

    History is append-only: entries are never mutated or reordered once
    inserted. ``turn_index`` is the turn the entry was produced in.
    """

    role: Role
    content: str
    turn_index: int
    trace: Optional[Tuple[ToolCallRecord, ...]] = None

    def __post_init__(self):
        if self.role not in ("user", "assistant"):
            raise ValueError(f"Unsupported history role: {self.role!r}")

        if self.turn_index < 0:
            raise ValueError("turn_index cannot be negative.")

        if self.trace is not None:
            object.__setattr__(self, "trace", tuple(self.trace))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "role": self.role,
            "content": self.content,
            "turn_index": self.turn_index,
        }
        if self.trace is not None:
            data["trace"] = [r.to_dict() for r in self.trace]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        trace = data.get("trace")
        return cls(
            role=data["role"],
            content=data["content"],
            turn_index=int(data["turn_index"]),
            trace=(
                tuple(ToolCallRecord.from_dict(r) for r in trace)
                if trace is not None
                else None
            ),
        )


def append_exchange(
    history: Sequence[HistoryEntry],
    user_entry: HistoryEntry,
    assistant_entry: HistoryEntry,
) -> Tuple[HistoryEntry, ...]:
    """Return a new history with the user then assistant entry appended."""
    return tuple(history) + (user_entry, assistant_entry)


def group_by_turn(history: Sequence[HistoryEntry]) -> Dict[int, Tuple[HistoryEntry, ...]]:
    """Group entries by turn index, preserving insertion order."""
    turns: Dict[int, Tuple[HistoryEntry, ...]] = {}
    for entry in history:
        turns[entry.turn_index] = turns.get(entry.turn_index, ()) + (entry,)
    return turns
