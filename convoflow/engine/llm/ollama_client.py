import logging
from typing import Any, Dict, List, Optional

import requests

from ...errors import ModelTimeoutError, ModelTransportError
from ...models.execution import ModelParams
from ...models.tool_call import ToolCall
from .llm_client import LLMClient, Message, ModelResponse

logger = logging.getLogger(__name__)


class OllamaClient(LLMClient):
    """
    Ollama LLM transport client.
    Local model backend.

    Ollama has no ``tool_choice``; a pinned tool is enforced by offering
    only that tool for the call.
    """

    def __init__(
        self,
        model: str = "llama3.1",
        base_url: str = "http://localhost:11434/api/chat",
        timeout_seconds: int = 120,
    ):
        self.model = model
        self.url = base_url
        self.timeout = timeout_seconds

    # ---------------------------------------------------------
    # Main Chat Interface
    # ---------------------------------------------------------

    def complete(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        params: Optional[ModelParams] = None,
    ) -> ModelResponse:

        params = params or ModelParams()

        options: Dict[str, Any] = {
            "temperature": params.temperature,
            "top_p": params.top_p,
        }
        if params.seed is not None:
            options["seed"] = params.seed

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [self._encode_message(m) for m in messages],
            "stream": False,
            "options": options,
        }

        if tools:
            if tool_choice:
                tools = [t for t in tools if t["function"]["name"] == tool_choice]
            payload["tools"] = tools

        logger.info(
            "[LLM] Ollama request | model=%s | messages=%d | tools=%d | pinned=%s",
            self.model,
            len(messages),
            len(tools or []),
            tool_choice,
        )

        try:
            response = requests.post(
                self.url,
                json=payload,
                timeout=self.timeout,
            )

            response.raise_for_status()

        except requests.Timeout:
            raise ModelTimeoutError("Ollama request timed out") from None

        except requests.RequestException as e:
            raise ModelTransportError(f"Ollama request failed: {str(e)}") from e

        try:
            message = response.json()["message"]
        except (KeyError, ValueError) as e:
            raise ModelTransportError(
                f"Unexpected Ollama response format: {str(e)}"
            ) from e

        calls = [
            ToolCall(
                name=raw.get("function", {}).get("name", ""),
                arguments=raw.get("function", {}).get("arguments", {}),
                id=f"call_{i}",
            )
            for i, raw in enumerate(message.get("tool_calls") or [])
        ]

        return ModelResponse(content=message.get("content") or "", tool_calls=tuple(calls))

    @staticmethod
    def _encode_message(message: Message) -> Message:
        # Ollama does not use tool call ids
        encoded = {k: v for k, v in message.items() if k != "tool_call_id"}

        if "tool_calls" in encoded:
            encoded["tool_calls"] = [
                {"function": c["function"]} for c in encoded["tool_calls"]
            ]

        return encoded
