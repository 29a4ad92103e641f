from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

from .registry import ToolRegistry


class ArgumentValidationError(Exception):
    """Raised when model-issued arguments do not fit a tool's input schema."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_SCALAR_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "int": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "float": _is_number,
    "number": _is_number,
    "bool": lambda v: isinstance(v, bool),
    "dict": lambda v: isinstance(v, dict),
    "list": lambda v: isinstance(v, list),
}


def matches(kind: Any, value: Any) -> bool:
    """
    Check ``value`` against one compact type declaration.

    ``kind`` is a notation string (``"string"``, ``"int"``,
    ``"list[string]"``...) or a Python type. Unknown notations accept
    any value.
    """
    if isinstance(kind, type):
        return isinstance(value, kind)

    if not isinstance(kind, str):
        return True

    kind = kind.lower()

    if kind.startswith("list[") and kind.endswith("]"):
        inner = kind[5:-1]
        return isinstance(value, list) and all(matches(inner, v) for v in value)

    check = _SCALAR_CHECKS.get(kind)
    return check(value) if check else True


class ArgumentValidator:
    """
    Validates tool-call arguments against the compact input schemas of a
    ToolRegistry. A trailing ``?`` marks an optional field.

    All problems of one call are collected and reported together, so the
    model can fix its arguments in a single retry.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    def validate(self, tool_name: str, args: Any) -> Dict[str, Any]:

        if not isinstance(args, dict):
            raise ArgumentValidationError(
                f"Arguments must be a JSON object, got {type(args).__name__}."
            )

        problems = self.problems(self._registry.get_input_schema(tool_name), args)
        if problems:
            raise ArgumentValidationError("; ".join(problems))

        return args

    @staticmethod
    def problems(schema: Mapping[str, Any], args: Mapping[str, Any]) -> List[str]:
        found: List[str] = []

        required = []
        for key, kind in schema.items():
            optional = isinstance(kind, str) and kind.endswith("?")
            if not optional:
                required.append(key)

        missing = [k for k in required if k not in args]
        if missing:
            found.append(f"Missing required arguments: {missing}")

        unknown = [k for k in args if k not in schema]
        if unknown:
            found.append(f"Unknown arguments: {unknown}")

        for key, value in args.items():
            if key not in schema:
                continue

            kind = schema[key]
            clean = kind.rstrip("?") if isinstance(kind, str) else kind

            if not matches(clean, value):
                found.append(
                    f"Argument '{key}' expected type {clean}, got {type(value).__name__}"
                )

        return found
