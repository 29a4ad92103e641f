import json
from typing import Any, Optional, Sequence

from ..errors import MalformedModelOutput
from ..models.history import HistoryEntry


# ============================================================
# JSON Extraction
# ============================================================

def extract_first_json(text: str) -> Optional[str]:
    start = text.find("{")
    if start == -1:
        return None

    stack = 0
    for i in range(start, len(text)):
        if text[i] == "{":
            stack += 1
        elif text[i] == "}":
            stack -= 1
            if stack == 0:
                return text[start:i + 1]

    return None


def parse_json_object(text: str) -> Any:
    """
    Parse the first JSON object embedded in a model reply.

    Models wrap JSON in prose or code fences; only the first balanced
    object is considered.
    """
    raw = extract_first_json(text or "")
    if raw is None:
        raise MalformedModelOutput(f"No JSON object in model output: {text!r}")

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedModelOutput(f"Invalid JSON in model output: {e}") from e


# ============================================================
# Transcript Formatting
# ============================================================

def format_transcript(entries: Sequence[HistoryEntry]) -> str:
    lines = []
    for entry in entries:
        lines.append(f"[turn {entry.turn_index}] {entry.role}: {entry.content}")
    return "\n".join(lines)
