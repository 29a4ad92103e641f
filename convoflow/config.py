import os
from typing import Optional


class EngineConfig:
    """
    Central configuration object for engine behavior.
    Controls the LLM backend, the tool-loop bound, the prompt window
    and the memory curation thresholds.
    """

    def __init__(
        self,
        llm_backend: str = "ollama",     # "ollama" or "groq"
        model: Optional[str] = None,
        max_tool_iterations: int = 8,
        history_window_turns: int = 6,
        history_token_budget: int = 1500,
        fact_window_turns: int = 3,
        summarize_every: int = 6,
        compaction_threshold: int = 4,
        max_summary_levels: int = 3,
    ):
        self.llm_backend = llm_backend
        self.model = model
        self.max_tool_iterations = max_tool_iterations
        self.history_window_turns = history_window_turns
        self.history_token_budget = history_token_budget
        self.fact_window_turns = fact_window_turns
        self.summarize_every = summarize_every
        self.compaction_threshold = compaction_threshold
        self.max_summary_levels = max_summary_levels

        self._validate()

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from ``CONVOFLOW_*`` environment variables."""

        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            return int(raw) if raw else default

        return cls(
            llm_backend=os.getenv("CONVOFLOW_LLM_BACKEND", "ollama"),
            model=os.getenv("CONVOFLOW_MODEL") or None,
            max_tool_iterations=_int("CONVOFLOW_MAX_TOOL_ITERATIONS", 8),
            history_window_turns=_int("CONVOFLOW_HISTORY_WINDOW_TURNS", 6),
            history_token_budget=_int("CONVOFLOW_HISTORY_TOKEN_BUDGET", 1500),
            fact_window_turns=_int("CONVOFLOW_FACT_WINDOW_TURNS", 3),
            summarize_every=_int("CONVOFLOW_SUMMARIZE_EVERY", 6),
            compaction_threshold=_int("CONVOFLOW_COMPACTION_THRESHOLD", 4),
            max_summary_levels=_int("CONVOFLOW_MAX_SUMMARY_LEVELS", 3),
        )

    def _validate(self):
        if self.llm_backend not in {"ollama", "groq"}:
            raise ValueError(f"Unsupported llm_backend: {self.llm_backend}")

        if self.max_tool_iterations < 2:
            # one pinned transition call plus at least one reply
            raise ValueError("max_tool_iterations must be >= 2")

        if self.history_window_turns < 1:
            raise ValueError("history_window_turns must be >= 1")

        if self.history_token_budget < 1:
            raise ValueError("history_token_budget must be positive")

        if self.fact_window_turns < 1:
            raise ValueError("fact_window_turns must be >= 1")

        if self.summarize_every < 1:
            raise ValueError("summarize_every must be >= 1")

        if self.compaction_threshold < 1:
            raise ValueError("compaction_threshold must be >= 1")

        if self.max_summary_levels < 1:
            raise ValueError("max_summary_levels must be >= 1")

    def __repr__(self) -> str:
        return (
            f"EngineConfig(backend={self.llm_backend}, model={self.model}, "
            f"K={self.max_tool_iterations}, summarize_every={self.summarize_every})"
        )
