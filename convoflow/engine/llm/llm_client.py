from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ...models.execution import ModelParams
from ...models.tool_call import ToolCall


Message = Dict[str, Any]


@dataclass(frozen=True)
class ModelResponse:
    """
    One reply of the reasoning model.

    Either a plain assistant message (``tool_calls`` empty) or one or
    more structured tool calls.
    """

    content: str = ""
    tool_calls: Tuple[ToolCall, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))
        object.__setattr__(self, "content", self.content or "")

    @property
    def is_tool_call(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> Message:
        """Assistant message echoing this reply into the conversation."""
        message: Message = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class LLMClient(ABC):
    """
    Abstract reasoning-model transport interface.

    Responsible only for:
        • Sending a message sequence and tool declarations
        • Returning a structured ModelResponse
        • Handling backend-specific transport

    Clients hold no conversation state; the same instance can serve
    unrelated conversations concurrently.
    """

    @property
    def name(self) -> str:
        """Return backend identity."""
        return self.__class__.__name__

    @abstractmethod
    def complete(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        params: Optional[ModelParams] = None,
    ) -> ModelResponse:
        """
        Execute a chat completion.

        Parameters
        ----------
        messages : List[Message]
            OpenAI-style messages (system / user / assistant / tool).

        tools : List[dict] | None
            Function declarations the model may call.

        tool_choice : str | None
            Name of a tool the model is forced to call. None lets the
            model choose between a tool call and a plain answer.

        params : ModelParams | None
            Sampling parameters (temperature, top_p, seed).

        Returns
        -------
        ModelResponse
            Plain content or structured tool calls.
        """
        raise NotImplementedError
