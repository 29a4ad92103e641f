from __future__ import annotations

import logging
from dataclasses import dataclass
from string import Template
from typing import Any, Dict, List, Mapping, Sequence

from ..errors import NodeResolutionError
from ..flow.transition import TRANSITION_TOOL_NAME
from ..models.flow import FlowNode, STAY_OPTION_ID
from ..models.history import HistoryEntry, group_by_turn
from ..models.memory import FactRecord, Summary
from ..tools.registry import ToolRegistry
from ..tools.schema import Tool
from .tokens import estimate_tokens

logger = logging.getLogger(__name__)


BASE_CONTRACT = """
You are the conversational agent of a guided conversation flow.

Follow the instructions of the current node. Be concise, accurate and
polite. Never invent facts about the user; rely on the known facts,
the conversation summary and the recent messages. When a detail is
missing from them, call the history retrieval tool.
""".strip()

FIRST_CALL_RULE = f"""
MANDATORY FIRST STEP:
Before writing any reply you MUST call the `{TRANSITION_TOOL_NAME}` tool exactly once
to record where the conversation goes next. Use option_id {STAY_OPTION_ID} to remain in
the current node. Only after receiving its result may you call other
tools or answer the user.
""".strip()


@dataclass(frozen=True)
class AssembledPrompt:
    messages: List[Dict[str, Any]]
    registry: ToolRegistry


def render_node_prompt(node: FlowNode, facts: Mapping[str, FactRecord]) -> str:
    """Substitute ``$key`` placeholders with known fact values."""
    values = {key: str(record.value) for key, record in facts.items()}
    return Template(node.prompt).safe_substitute(values)


def select_history_window(
    history: Sequence[HistoryEntry],
    max_turns: int,
    token_budget: int,
) -> List[HistoryEntry]:
    """
    Recent whole turns, newest first, while both limits hold.

    The most recent turn is always included, even when it alone
    exceeds the token budget.
    """
    turns = group_by_turn(history)
    selected: List[int] = []
    used = 0

    for turn_index in sorted(turns, reverse=True):
        cost = sum(estimate_tokens(e.content) for e in turns[turn_index])

        if selected and (len(selected) >= max_turns or used + cost > token_budget):
            break

        selected.append(turn_index)
        used += cost

    window: List[HistoryEntry] = []
    for turn_index in sorted(selected):
        window.extend(turns[turn_index])
    return window


class PromptAssembler:
    """
    Builds the bounded message sequence and tool set for one turn.

    Message order:
        1. system root (contract + mandatory first call + node section)
        2. known facts         (only when facts exist)
        3. conversation summary (only when a chunk exists)
        4. recent history window
        5. the new user message

    Pure transform: no model calls, no state.
    """

    def __init__(self, history_window_turns: int, history_token_budget: int) -> None:
        self.history_window_turns = history_window_turns
        self.history_token_budget = history_token_budget

    def assemble(
        self,
        node: FlowNode,
        facts: Mapping[str, FactRecord],
        summary: Summary,
        history: Sequence[HistoryEntry],
        user_message: str,
        tools: Sequence[Tool],
    ) -> AssembledPrompt:

        if node.is_terminal:
            raise NodeResolutionError(
                f"Cannot assemble a turn prompt for stop node '{node.id}'",
                {"node_id": node.id},
            )

        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self._system_root(node, facts)}
        ]

        if facts:
            messages.append({"role": "system", "content": self._facts_block(facts)})

        if not summary.is_empty:
            messages.append({"role": "system", "content": self._summary_block(summary)})

        window = select_history_window(
            history,
            self.history_window_turns,
            self.history_token_budget,
        )
        messages.extend({"role": e.role, "content": e.content} for e in window)

        messages.append({"role": "user", "content": user_message})

        registry = ToolRegistry()
        registry.register_many(tools)

        if not registry.has_tool(TRANSITION_TOOL_NAME):
            raise ValueError("The transition tool must be part of every turn.")

        logger.debug(
            "[PROMPT] Assembled | node=%s | messages=%d | window_entries=%d | tools=%s",
            node.id,
            len(messages),
            len(window),
            registry.list_tool_names(),
        )

        return AssembledPrompt(messages=messages, registry=registry)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _system_root(self, node: FlowNode, facts: Mapping[str, FactRecord]) -> str:
        lines = [
            BASE_CONTRACT,
            "",
            FIRST_CALL_RULE,
            "",
            f"CURRENT NODE: {node.id} ({node.type.value})",
            "Node instructions:",
            render_node_prompt(node, facts) or "(none)",
        ]

        if node.options:
            lines.append("")
            lines.append("Options:")
            lines.append(f"  {STAY_OPTION_ID}: remain in this node")
            for opt in node.options:
                lines.append(f"  {opt.option_id}: {opt.label}")

        return "\n".join(lines)

    @staticmethod
    def _facts_block(facts: Mapping[str, FactRecord]) -> str:
        lines = ["Known facts about the user:"]
        for key in sorted(facts):
            lines.append(f"- {key}: {facts[key].value}")
        return "\n".join(lines)

    @staticmethod
    def _summary_block(summary: Summary) -> str:
        lines = ["Summary of the earlier conversation:"]
        for chunk in summary.active_chunks():
            lines.append(f"[turns {chunk.start}-{chunk.end - 1}] {chunk.text}")
        return "\n".join(lines)
