from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


ToolHandler = Callable[[Dict[str, Any]], Any]


# Compact type notation → JSON schema
_JSON_TYPES = {
    "string": {"type": "string"},
    "int": {"type": "integer"},
    "float": {"type": "number"},
    "bool": {"type": "boolean"},
    "dict": {"type": "object"},
    "list": {"type": "array"},
    "list[number]": {"type": "array", "items": {"type": "number"}},
    "list[string]": {"type": "array", "items": {"type": "string"}},
}


@dataclass(frozen=True)
class Tool:
    """
    Declarative contract of one capability offered to the reasoning model.

    A Tool pairs a name and argument schema with the handler that
    executes it. The engine never owns the implementation of external
    retrieval tools; it only needs this name / schema / handler triple.

    Schemas
    -------
    ``input_schema`` uses the compact notation shared with the
    ArgumentValidator::

        {"query": "string", "limit": "int?"}

    A trailing ``?`` marks an optional field. When ``parameters`` is set
    it is sent to the model verbatim as JSON schema and the handler is
    responsible for validating its own arguments.
    """

    name: str
    description: str
    handler: ToolHandler
    input_schema: Dict[str, Any]
    parameters: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """
        Lightweight invariant checks.

        Raises early if the contract is malformed.
        """

        if not self.name or not isinstance(self.name, str):
            raise ValueError("Tool name must be a non-empty string.")

        if not callable(self.handler):
            raise TypeError(f"Tool '{self.name}' handler must be callable.")

        if not isinstance(self.input_schema, dict):
            raise TypeError("input_schema must be a dictionary.")

        if self.parameters is not None and not isinstance(self.parameters, dict):
            raise TypeError("parameters must be a JSON-schema dictionary.")

    # ------------------------------------------------------------------
    # Derived Properties
    # ------------------------------------------------------------------

    @property
    def self_validating(self) -> bool:
        return self.parameters is not None

    def json_parameters(self) -> Dict[str, Any]:
        if self.parameters is not None:
            return self.parameters

        properties: Dict[str, Any] = {}
        required = []

        for key, kind in self.input_schema.items():
            optional = isinstance(kind, str) and kind.endswith("?")
            clean = kind.rstrip("?").lower() if isinstance(kind, str) else kind
            properties[key] = dict(_JSON_TYPES.get(clean, {}))
            if not optional:
                required.append(key)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    def to_function_schema(self) -> Dict[str, Any]:
        """OpenAI-style function declaration sent to the model."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.json_parameters(),
            },
        }
