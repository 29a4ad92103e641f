from .history_tool import HISTORY_TOOL_NAME, history_tool
from .transition_tool import TransitionBinding

__all__ = [
    "HISTORY_TOOL_NAME",
    "history_tool",
    "TransitionBinding",
]
