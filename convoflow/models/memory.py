from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Tuple


Provenance = Literal["extracted", "corrected"]


# ============================================================
# Facts
# ============================================================

@dataclass(frozen=True)
class FactRecord:
    """
    A single durable fact about the conversation.

    Keys are unique inside a MemoryState. A later extraction for the
    same key with a different value is a correction: the value and its
    provenance are overwritten, the key is never duplicated.
    """

    key: str
    value: Any
    source_turn_index: int
    confidence: float = 1.0
    provenance: Provenance = "extracted"

    def __post_init__(self):
        if not self.key or not isinstance(self.key, str):
            raise ValueError("Fact key must be a non-empty string.")

        # Clamp confidence safely into range
        object.__setattr__(
            self,
            "confidence",
            max(0.0, min(1.0, float(self.confidence))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "source_turn_index": self.source_turn_index,
            "confidence": self.confidence,
            "provenance": self.provenance,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FactRecord":
        return cls(
            key=data["key"],
            value=data["value"],
            source_turn_index=int(data["source_turn_index"]),
            confidence=data.get("confidence", 1.0),
            provenance=data.get("provenance", "extracted"),
        )


# ============================================================
# Hierarchical Summary
# ============================================================

@dataclass(frozen=True)
class SummaryChunk:
    """
    Summary text covering the half-open turn span ``[start, end)``.

    Level 0 chunks are derived from raw history; level L chunks are
    derived from level L-1 chunks and cover the union of their spans.
    """

    level: int
    start: int
    end: int
    text: str

    def __post_init__(self):
        if self.level < 0:
            raise ValueError("Summary level cannot be negative.")

        if not 0 <= self.start < self.end:
            raise ValueError(
                f"Invalid summary span [{self.start}, {self.end})."
            )

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "turn_span": [self.start, self.end],
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SummaryChunk":
        start, end = data["turn_span"]
        return cls(level=int(data["level"]), start=int(start), end=int(end), text=data["text"])


@dataclass(frozen=True)
class Summary:
    """
    Multi-level summary of the conversation.

    ``levels[L]`` holds the chunks of level L in span order. Every level
    tiles a prefix of the conversation: spans start at turn 0, follow
    each other without gaps, and every chunk above level 0 begins and
    ends on an edge of the level below. Folded chunks are kept for
    provenance; ``active_chunks`` decides what the prompt sees.
    """

    levels: Tuple[Tuple[SummaryChunk, ...], ...] = field(default_factory=tuple)

    def __post_init__(self):
        levels = tuple(tuple(chunks) for chunks in self.levels)
        object.__setattr__(self, "levels", levels)

        lower_edges = None
        for level, chunks in enumerate(levels):
            previous_end = 0
            for chunk in chunks:
                if chunk.level != level:
                    raise ValueError(
                        f"Chunk of level {chunk.level} stored at level {level}."
                    )
                if chunk.start < previous_end:
                    raise ValueError(
                        f"Overlapping summary spans at level {level}: "
                        f"[{chunk.start}, {chunk.end}) after end {previous_end}."
                    )
                if chunk.start > previous_end:
                    raise ValueError(
                        f"Gap in summary spans at level {level}: "
                        f"turns [{previous_end}, {chunk.start}) are not covered."
                    )
                if lower_edges is not None and not {chunk.start, chunk.end} <= lower_edges:
                    raise ValueError(
                        f"Chunk [{chunk.start}, {chunk.end}) at level {level} "
                        f"does not span whole level-{level - 1} chunks."
                    )
                previous_end = chunk.end

            lower_edges = {0} | {c.end for c in chunks}

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def level_count(self) -> int:
        """Number of levels that hold at least one chunk."""
        return sum(1 for chunks in self.levels if chunks)

    @property
    def is_empty(self) -> bool:
        return not any(self.levels)

    def chunks_at(self, level: int) -> Tuple[SummaryChunk, ...]:
        if level < len(self.levels):
            return self.levels[level]
        return ()

    @property
    def level0_boundary(self) -> int:
        """First turn not covered by a level-0 chunk."""
        chunks = self.chunks_at(0)
        return chunks[-1].end if chunks else 0

    def folded_until(self, level: int) -> int:
        """Turn up to which chunks of ``level`` were folded into ``level + 1``."""
        upper = self.chunks_at(level + 1)
        return upper[-1].end if upper else 0

    def unfolded_chunks(self, level: int) -> Tuple[SummaryChunk, ...]:
        boundary = self.folded_until(level)
        return tuple(c for c in self.chunks_at(level) if c.start >= boundary)

    def active_chunks(self) -> List[SummaryChunk]:
        """
        Chunks surfaced to the prompt, in span order.

        The highest level covers the oldest spans; each lower level only
        contributes chunks that start after what is already covered.
        """
        active: List[SummaryChunk] = []
        covered = 0

        for level in range(len(self.levels) - 1, -1, -1):
            for chunk in self.levels[level]:
                if chunk.start >= covered:
                    active.append(chunk)
                    covered = chunk.end

        return active

    # ------------------------------------------------------------------
    # Functional Updates
    # ------------------------------------------------------------------

    def with_chunk(self, chunk: SummaryChunk) -> "Summary":
        """Return a new Summary with ``chunk`` appended at its level."""
        levels = list(self.levels)
        while len(levels) <= chunk.level:
            levels.append(())
        levels[chunk.level] = levels[chunk.level] + (chunk,)
        return Summary(levels=tuple(levels))

    # ------------------------------------------------------------------
    # Serialization Boundary
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level_count": self.level_count,
            "levels": [[c.to_dict() for c in chunks] for chunks in self.levels],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Summary":
        return cls(
            levels=tuple(
                tuple(SummaryChunk.from_dict(c) for c in chunks)
                for chunks in data.get("levels", [])
            )
        )


# ============================================================
# Memory State
# ============================================================

@dataclass(frozen=True)
class MemoryState:
    """
    Bounded, tiered memory of one conversation.

    Owned by the conversation and threaded turn-to-turn by the caller.
    The engine never keeps a MemoryState between calls; every update
    produces a new instance.
    """

    turn_index: int = 0
    facts: Mapping[str, FactRecord] = field(default_factory=dict)
    summary: Summary = field(default_factory=Summary)

    def __post_init__(self):
        if self.turn_index < 0:
            raise ValueError("turn_index cannot be negative.")

        if self.summary.level0_boundary > self.turn_index:
            raise ValueError(
                f"Summary covers turns up to {self.summary.level0_boundary} "
                f"but only {self.turn_index} turns have completed."
            )

        facts = dict(self.facts)
        for key, record in facts.items():
            if record.key != key:
                raise ValueError(
                    f"Fact stored under '{key}' carries key '{record.key}'."
                )
        object.__setattr__(self, "facts", MappingProxyType(facts))

    @classmethod
    def empty(cls) -> "MemoryState":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn_index": self.turn_index,
            "facts": {k: self.facts[k].to_dict() for k in sorted(self.facts)},
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryState":
        return cls(
            turn_index=int(data.get("turn_index", 0)),
            facts={
                key: FactRecord.from_dict(record)
                for key, record in data.get("facts", {}).items()
            },
            summary=Summary.from_dict(data.get("summary", {})),
        )
