from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from ..errors import EngineError
from ..models.tool_call import ToolCall, ToolCallRecord
from .registry import ToolRegistry
from .validator import ArgumentValidator, ArgumentValidationError

logger = logging.getLogger(__name__)


class ToolExecutor:
    """
    Executes model-issued tool calls against a per-turn ToolRegistry.

    Policy
    ------
    • Turn-fatal EngineErrors raised by a handler propagate unchanged.
    • Unknown tools, invalid arguments and handler exceptions become a
      ToolCallRecord with ``error`` set; the error is reported back to
      the model as the tool result.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._registry = registry
        self._arg_validator = ArgumentValidator(registry)
        self._clock = clock or time.monotonic

    # ============================================================
    # MAIN EXECUTION
    # ============================================================

    def execute(self, call: ToolCall) -> ToolCallRecord:

        start = self._clock()

        try:
            tool = self._registry.get(call.name)
        except KeyError as e:
            return self._failure_record(call, str(e), start)

        args = call.arguments

        if not tool.self_validating:
            try:
                args = self._arg_validator.validate(call.name, args)
            except ArgumentValidationError as e:
                return self._failure_record(call, f"Invalid arguments: {e}", start)

        try:
            output = tool.handler(args)
        except EngineError:
            raise
        except Exception as e:
            logger.warning(
                "[TOOL EXECUTOR] Handler failed | tool=%s | error=%s",
                call.name,
                e,
            )
            return self._failure_record(call, f"Tool execution failed: {e}", start)

        record = ToolCallRecord(
            name=call.name,
            args=call.arguments,
            result=output,
            latency_ms=self._latency_ms(start),
        )

        logger.info(
            "[TOOL EXECUTOR] %s ok | %dms",
            call.name,
            record.latency_ms,
        )
        return record

    # ============================================================
    # RESULT BUILDERS
    # ============================================================

    def _failure_record(self, call: ToolCall, error: str, start: float) -> ToolCallRecord:
        return ToolCallRecord(
            name=call.name,
            args=call.arguments,
            result=None,
            latency_ms=self._latency_ms(start),
            error=error,
        )

    def _latency_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    # ------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def describe(self, record: ToolCallRecord) -> Any:
        """Payload reported back to the model for one executed call."""
        if record.error is not None:
            return {"error": record.error}
        return record.result
