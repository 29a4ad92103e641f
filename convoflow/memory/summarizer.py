from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from ..errors import MalformedModelOutput, MemoryStageError
from ..models.execution import ModelParams
from ..models.history import HistoryEntry
from ..models.memory import Summary, SummaryChunk
from .utils import format_transcript

if TYPE_CHECKING:
    from ..engine.llm.llm_client import LLMClient

logger = logging.getLogger(__name__)


SUMMARY_PROMPT = """
Summarize the conversation excerpt below in a few sentences.
Keep names, numbers, decisions and open questions. Do not add
anything that was not said. Reply with the summary text only.
""".strip()


class Summarizer:
    """
    Level-0 summarization stage.

    Once ``every`` turns have completed past the last level-0 boundary,
    exactly one chunk covering ``[boundary, turn_index)`` is appended.
    """

    def __init__(self, llm: LLMClient, every: int):
        self._llm = llm
        self._every = every

    def due(self, summary: Summary, turn_index: int) -> bool:
        return turn_index - summary.level0_boundary >= self._every

    def summarize(
        self,
        summary: Summary,
        history: Sequence[HistoryEntry],
        turn_index: int,
        params: Optional[ModelParams] = None,
    ) -> Summary:

        if not self.due(summary, turn_index):
            return summary

        start = summary.level0_boundary
        entries = [e for e in history if start <= e.turn_index < turn_index]

        if not entries:
            raise MemoryStageError(
                f"No history entries for summary span [{start}, {turn_index})"
            )

        response = self._llm.complete(
            [
                {"role": "system", "content": SUMMARY_PROMPT},
                {"role": "user", "content": format_transcript(entries)},
            ],
            params=params,
        )

        text = response.content.strip()
        if not text:
            raise MalformedModelOutput("Summarizer returned empty text")

        chunk = SummaryChunk(level=0, start=start, end=turn_index, text=text)

        logger.info(
            "[SUMMARY] New level-0 chunk | span=[%d, %d)",
            chunk.start,
            chunk.end,
        )
        return summary.with_chunk(chunk)
