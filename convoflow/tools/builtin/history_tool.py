from typing import Sequence

from convoflow.models.history import HistoryEntry
from convoflow.tools.schema import Tool

HISTORY_TOOL_NAME = "get_full_history"


def history_tool(history: Sequence[HistoryEntry]) -> Tool:
    """
    Full-history retrieval tool bound to one turn's raw history.

    Returns every entry verbatim, independent of any summarization, so
    the model can recover exact wording the prompt window left out.
    """

    snapshot = tuple(history)

    def handler(args):
        return {
            "turns": len({e.turn_index for e in snapshot}),
            "entries": [
                {"role": e.role, "content": e.content, "turn_index": e.turn_index}
                for e in snapshot
            ],
        }

    return Tool(
        name=HISTORY_TOOL_NAME,
        description=(
            "Retrieve the complete, unsummarized conversation history. "
            "Use it when the summary or recent messages lack a detail."
        ),
        handler=handler,
        input_schema={},
    )
