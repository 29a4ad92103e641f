"""
Tool schema boundary: contracts, per-turn registry, validation and execution.
"""

from .schema import Tool
from .registry import ToolRegistry
from .executor import ToolExecutor
from .validator import ArgumentValidator, ArgumentValidationError

__all__ = [
    "Tool",
    "ToolRegistry",
    "ToolExecutor",
    "ArgumentValidator",
    "ArgumentValidationError",
]
