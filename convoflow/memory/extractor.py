from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..errors import MalformedModelOutput
from ..models.execution import ModelParams
from ..models.history import HistoryEntry, group_by_turn
from .facts import FactCandidate
from .utils import format_transcript, parse_json_object

if TYPE_CHECKING:
    from ..engine.llm.llm_client import LLMClient

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """
You extract durable facts about the user from a conversation excerpt.

Return STRICT JSON in this format:

{
  "facts": [
    {"key": "snake_case_name", "value": "...", "confidence": 0.0-1.0}
  ]
}

Rules:
- Only facts stated by the user, in their exact wording.
- Reuse the same key when the user corrects an earlier value.
- Return {"facts": []} when there is nothing to extract.
""".strip()


def recent_turns(history: Sequence[HistoryEntry], turns: int) -> List[HistoryEntry]:
    """Raw entries of the last ``turns`` turns, in original order."""
    grouped = group_by_turn(history)
    keep = sorted(grouped)[-turns:] if turns > 0 else []

    window: List[HistoryEntry] = []
    for turn_index in keep:
        window.extend(grouped[turn_index])
    return window


class FactExtractor:
    """
    Extraction pass of the memory pipeline.

    Always reads raw history, never the summary, so candidate values
    carry the user's exact wording.
    """

    def __init__(self, llm: LLMClient, window_turns: int):
        self._llm = llm
        self._window_turns = window_turns

    def extract(
        self,
        history: Sequence[HistoryEntry],
        params: Optional[ModelParams] = None,
    ) -> List[FactCandidate]:

        window = recent_turns(history, self._window_turns)
        if not window:
            return []

        response = self._llm.complete(
            [
                {"role": "system", "content": EXTRACTION_PROMPT},
                {"role": "user", "content": format_transcript(window)},
            ],
            params=params,
        )

        data = parse_json_object(response.content)

        if not isinstance(data, dict) or not isinstance(data.get("facts"), list):
            raise MalformedModelOutput(
                f"Extraction output must hold a 'facts' list: {data!r}"
            )

        candidates = []
        for item in data["facts"]:
            if not isinstance(item, dict) or "key" not in item or "value" not in item:
                raise MalformedModelOutput(f"Malformed fact entry: {item!r}")

            try:
                candidates.append(
                    FactCandidate(
                        key=item["key"],
                        value=item["value"],
                        confidence=float(item.get("confidence", 1.0)),
                    )
                )
            except (TypeError, ValueError) as e:
                raise MalformedModelOutput(f"Malformed fact entry {item!r}: {e}") from e

        logger.debug(
            "[FACTS] Extracted %d candidates from %d entries",
            len(candidates),
            len(window),
        )
        return candidates
