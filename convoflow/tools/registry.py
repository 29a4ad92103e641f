from __future__ import annotations

from typing import Any, Dict, Iterable, List
from copy import deepcopy
import logging

from .schema import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Registry of the tools offered to the model during one turn.

    This forms the capability boundary: if a tool is not registered here,
    the model cannot execute it. A registry is built per turn and never
    shared between calls.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    # ------------------------------------------------------------------
    # Strict Registration
    # ------------------------------------------------------------------

    def register(self, tool: Tool) -> None:

        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered.")

        self._tools[tool.name] = tool

        logger.debug(
            "[TOOL REGISTRY] Tool registered: %s | total=%d",
            tool.name,
            len(self._tools),
        )

    def register_many(self, tools: Iterable[Tool]) -> None:

        tools = list(tools)
        names = [t.name for t in tools]

        duplicates = sorted(
            {n for n in names if names.count(n) > 1 or n in self._tools}
        )
        if duplicates:
            raise ValueError(f"Tools already registered: {duplicates}")

        for tool in tools:
            self._tools[tool.name] = tool

        logger.debug(
            "[TOOL REGISTRY] Bulk registration complete | total=%d",
            len(self._tools),
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, tool_name: str) -> Tool:
        try:
            return self._tools[tool_name]
        except KeyError:
            logger.warning(
                "[TOOL REGISTRY] Lookup FAILED: %s | available=%s",
                tool_name,
                list(self._tools.keys()),
            )
            raise KeyError(f"Tool '{tool_name}' is not registered.") from None

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def list_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------
    # Schema Access
    # ------------------------------------------------------------------

    def get_input_schema(self, tool_name: str) -> Dict[str, Any]:
        return deepcopy(self.get(tool_name).input_schema)

    def function_manifest(self) -> List[Dict[str, Any]]:
        """Function declarations for every registered tool."""
        return [tool.to_function_schema() for tool in self._tools.values()]
