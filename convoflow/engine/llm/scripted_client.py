from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ...errors import ModelTransportError
from ...models.execution import ModelParams
from ...models.tool_call import ToolCall
from .llm_client import LLMClient, Message, ModelResponse


@dataclass(frozen=True)
class LLMRequest:
    """Snapshot of one call received by the ScriptedLLMClient."""

    messages: List[Message]
    tools: Optional[List[Dict[str, Any]]]
    tool_choice: Optional[str]
    params: Optional[ModelParams]

    @property
    def tool_names(self) -> List[str]:
        return [t["function"]["name"] for t in self.tools or []]


Responder = Callable[[LLMRequest], ModelResponse]


def text_reply(content: str) -> ModelResponse:
    return ModelResponse(content=content)


def tool_reply(name: str, arguments: Any, call_id: Optional[str] = None) -> ModelResponse:
    return ModelResponse(
        tool_calls=(ToolCall(name=name, arguments=arguments, id=call_id or f"call_{name}"),)
    )


class ScriptedLLMClient(LLMClient):
    """
    Deterministic substitute for the reasoning model.

    Turn calls (those offering tools) are answered from ``script``: a
    sequence of ModelResponses replayed in order, or a callable. Memory
    curation calls (no tools) are answered by ``curator``.

    Every request is recorded in ``requests`` for inspection.
    """

    def __init__(
        self,
        script: Union[Sequence[ModelResponse], Responder] = (),
        curator: Optional[Responder] = None,
    ) -> None:
        if callable(script):
            self._responder: Optional[Responder] = script
            self._queue: List[ModelResponse] = []
        else:
            self._responder = None
            self._queue = list(script)

        self._curator = curator
        self.requests: List[LLMRequest] = []

    def complete(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        params: Optional[ModelParams] = None,
    ) -> ModelResponse:

        request = LLMRequest(
            messages=copy.deepcopy(messages),
            tools=copy.deepcopy(tools),
            tool_choice=tool_choice,
            params=params,
        )
        self.requests.append(request)

        if not tools:
            if self._curator is None:
                raise ModelTransportError("No scripted reply for curation call")
            return self._curator(request)

        if self._responder is not None:
            return self._responder(request)

        if not self._queue:
            raise ModelTransportError("Scripted responses exhausted")

        return self._queue.pop(0)

    @property
    def turn_requests(self) -> List[LLMRequest]:
        return [r for r in self.requests if r.tools]
