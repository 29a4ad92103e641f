from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..errors import MalformedModelOutput
from ..models.execution import ModelParams
from ..models.memory import Summary, SummaryChunk

if TYPE_CHECKING:
    from ..engine.llm.llm_client import LLMClient

logger = logging.getLogger(__name__)


FOLD_PROMPT = """
The passages below summarize consecutive parts of one conversation,
oldest first. Merge them into a single shorter summary that keeps
names, numbers, decisions and open questions. Reply with the summary
text only.
""".strip()


def coverage_spans(summary: Summary) -> List[Tuple[int, int]]:
    """Union of every chunk span across all levels, as merged intervals."""
    spans = sorted(c.span for chunks in summary.levels for c in chunks)

    merged: List[Tuple[int, int]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class Resummarizer:
    """
    Hierarchical compaction stage.

    When a level holds more than ``threshold`` chunks not yet folded
    upward, all of them are folded into one chunk at ``level + 1``.
    Folded chunks stay in place for provenance; the summary's active
    view prefers the higher level for their span.

    Levels are processed bottom-up, so a fold may cascade within one
    run. Nothing is folded into a level at or above ``max_levels``.
    """

    def __init__(self, llm: LLMClient, threshold: int, max_levels: int):
        self._llm = llm
        self._threshold = threshold
        self._max_levels = max_levels

    def compact(self, summary: Summary, params: Optional[ModelParams] = None) -> Summary:

        for level in range(self._max_levels - 1):
            pending = summary.unfolded_chunks(level)

            if len(pending) <= self._threshold:
                continue

            chunk = self._fold(pending, level + 1, params)
            summary = summary.with_chunk(chunk)

            logger.info(
                "[SUMMARY] Folded %d level-%d chunks | span=[%d, %d)",
                len(pending),
                level,
                chunk.start,
                chunk.end,
            )

        return summary

    def _fold(
        self,
        chunks: Sequence[SummaryChunk],
        level: int,
        params: Optional[ModelParams],
    ) -> SummaryChunk:

        passages = "\n\n".join(
            f"[turns {c.start}-{c.end - 1}] {c.text}" for c in chunks
        )

        response = self._llm.complete(
            [
                {"role": "system", "content": FOLD_PROMPT},
                {"role": "user", "content": passages},
            ],
            params=params,
        )

        text = response.content.strip()
        if not text:
            raise MalformedModelOutput(f"Empty fold output at level {level}")

        return SummaryChunk(
            level=level,
            start=chunks[0].start,
            end=chunks[-1].end,
            text=text,
        )
