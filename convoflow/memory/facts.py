from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Tuple

from ..models.memory import FactRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactCandidate:
    """A ``{key, value}`` pair proposed by the extraction pass."""

    key: str
    value: Any
    confidence: float = 1.0

    def __post_init__(self):
        if not self.key or not isinstance(self.key, str):
            raise ValueError("Fact candidate key must be a non-empty string.")


@dataclass(frozen=True)
class FactMergeResult:
    facts: Dict[str, FactRecord]
    added: Tuple[str, ...] = field(default_factory=tuple)
    updated: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated)


def merge_facts(
    facts: Mapping[str, FactRecord],
    candidates: Iterable[FactCandidate],
    turn_index: int,
) -> FactMergeResult:
    """
    Merge extracted candidates into a copy of ``facts``.

    Rules
    -----
    • Unknown key: added with provenance ``extracted``.
    • Known key, same value: no-op. The existing record, including its
      provenance and source turn, is kept untouched.
    • Known key, different value: treated as a correction. Last write
      wins and provenance becomes ``corrected``.

    Keys are never duplicated. Merging the same candidates twice gives
    the same mapping as merging them once.
    """

    merged: Dict[str, FactRecord] = dict(facts)
    added = []
    updated = []

    for candidate in candidates:
        existing = merged.get(candidate.key)

        if existing is None:
            merged[candidate.key] = FactRecord(
                key=candidate.key,
                value=candidate.value,
                source_turn_index=turn_index,
                confidence=candidate.confidence,
            )
            if candidate.key not in added:
                added.append(candidate.key)
            continue

        if existing.value == candidate.value:
            continue

        logger.info(
            "[FACTS] Correction | key=%s | %r -> %r",
            candidate.key,
            existing.value,
            candidate.value,
        )

        # A key first added in this same merge stays a plain extraction
        fresh = candidate.key in added

        merged[candidate.key] = FactRecord(
            key=candidate.key,
            value=candidate.value,
            source_turn_index=turn_index,
            confidence=candidate.confidence,
            provenance="extracted" if fresh else "corrected",
        )
        if not fresh and candidate.key not in updated:
            updated.append(candidate.key)

    return FactMergeResult(
        facts=merged,
        added=tuple(added),
        updated=tuple(updated),
    )
