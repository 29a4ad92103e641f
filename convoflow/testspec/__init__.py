"""
Models of the versioned test-specification document.

The engine never reads this format; it is consumed by the evaluation
side, whose per-turn expectations are all checkable from a single
ExecutionResult.
"""

from .models import (
    TestCase,
    TestSuite,
    ToolCallExpectation,
    TurnExpectation,
    TurnSpec,
)
from .loader import load_suite

__all__ = [
    "TestCase",
    "TestSuite",
    "ToolCallExpectation",
    "TurnExpectation",
    "TurnSpec",
    "load_suite",
]
