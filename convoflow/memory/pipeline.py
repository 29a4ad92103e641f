from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

from ..config import EngineConfig
from ..models.execution import (
    MEMORY_STAGES,
    MemoryPipelineSettings,
    ModelParams,
    PipelineReport,
    StageOutcome,
)
from ..models.history import HistoryEntry
from ..models.memory import MemoryState
from .extractor import FactExtractor
from .facts import merge_facts
from .hierarchy import Resummarizer
from .summarizer import Summarizer

if TYPE_CHECKING:
    from ..engine.llm.llm_client import LLMClient

logger = logging.getLogger(__name__)


class MemoryPipeline:
    """
    Post-turn memory curation.

    Stages run in fixed order (facts, summarize, resummarize). Each
    stage is fault-isolated: a failure is logged, leaves that stage's
    part of the MemoryState unchanged, and never blocks later stages or
    the turn result. A partially updated state is a valid outcome.

    ``run`` receives the state after the turn increment and the history
    with the turn's exchange already appended.
    """

    def __init__(self, llm: LLMClient, config: EngineConfig):
        self._extractor = FactExtractor(llm, config.fact_window_turns)
        self._summarizer = Summarizer(llm, config.summarize_every)
        self._resummarizer = Resummarizer(
            llm,
            config.compaction_threshold,
            config.max_summary_levels,
        )

    def run(
        self,
        memory: MemoryState,
        history: Sequence[HistoryEntry],
        settings: MemoryPipelineSettings,
        params: Optional[ModelParams] = None,
    ) -> Tuple[MemoryState, PipelineReport]:

        outcomes: List[StageOutcome] = []
        added: Tuple[str, ...] = ()
        updated: Tuple[str, ...] = ()

        # ------------------------------------------------------------
        # Stage 1: fact extraction / merge
        # ------------------------------------------------------------

        def facts_stage():
            nonlocal memory, added, updated

            candidates = self._extractor.extract(history, params)
            merged = merge_facts(
                memory.facts,
                candidates,
                turn_index=max(memory.turn_index - 1, 0),
            )
            if not merged.changed:
                return False

            memory = replace(memory, facts=merged.facts)
            added, updated = merged.added, merged.updated
            return True

        # ------------------------------------------------------------
        # Stage 2: level-0 summarization
        # ------------------------------------------------------------

        def summarize_stage():
            nonlocal memory

            summary = self._summarizer.summarize(
                memory.summary,
                history,
                memory.turn_index,
                params,
            )
            if summary is memory.summary:
                return False

            memory = replace(memory, summary=summary)
            return True

        # ------------------------------------------------------------
        # Stage 3: hierarchical re-summarization
        # ------------------------------------------------------------

        def resummarize_stage():
            nonlocal memory

            summary = self._resummarizer.compact(memory.summary, params)
            if summary is memory.summary:
                return False

            memory = replace(memory, summary=summary)
            return True

        stages = dict(zip(MEMORY_STAGES, (facts_stage, summarize_stage, resummarize_stage)))

        for name in MEMORY_STAGES:
            outcomes.append(self._run_stage(name, stages[name], settings))

        report = PipelineReport(
            outcomes=tuple(outcomes),
            facts_added=added,
            facts_updated=updated,
        )

        logger.info(
            "[MEMORY PIPELINE] turn=%d | %s",
            memory.turn_index,
            ", ".join(f"{o.stage}={o.status}" for o in outcomes),
        )
        return memory, report

    @staticmethod
    def _run_stage(
        name: str,
        stage: Callable[[], bool],
        settings: MemoryPipelineSettings,
    ) -> StageOutcome:

        if not settings.allows(name):
            return StageOutcome(stage=name, status="skipped")

        try:
            changed = stage()
        except Exception as e:
            logger.exception("[MEMORY PIPELINE] Stage '%s' failed", name)
            return StageOutcome(stage=name, status="failed", error=str(e))

        return StageOutcome(stage=name, status="applied" if changed else "unchanged")
