import json
import logging
import os
from typing import Any, Dict, List, Optional

import requests

from ...errors import ModelTimeoutError, ModelTransportError
from ...models.execution import ModelParams
from ...models.tool_call import ToolCall
from .llm_client import LLMClient, Message, ModelResponse

logger = logging.getLogger(__name__)


class GroqClient(LLMClient):
    """
    Groq transport client (OpenAI-compatible chat completions with tools).
    """

    def __init__(
        self,
        model: str = "llama-3.1-8b-instant",
        base_url: str = "https://api.groq.com/openai/v1/chat/completions",
        timeout_seconds: int = 60,
    ):
        self.model = model
        self.url = base_url
        self.timeout = timeout_seconds

        self.api_key = os.getenv("GROQ_API_KEY")

        if not self.api_key:
            raise RuntimeError(
                "GROQ_API_KEY environment variable not set"
            )

    def complete(
        self,
        messages: List[Message],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        params: Optional[ModelParams] = None,
    ) -> ModelResponse:

        params = params or ModelParams()

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [self._encode_message(m) for m in messages],
            "temperature": params.temperature,
            "top_p": params.top_p,
        }

        if params.seed is not None:
            payload["seed"] = params.seed

        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = (
                {"type": "function", "function": {"name": tool_choice}}
                if tool_choice
                else "auto"
            )

        logger.info(
            "[LLM] Groq request | model=%s | messages=%d | tools=%d | pinned=%s",
            self.model,
            len(messages),
            len(tools or []),
            tool_choice,
        )

        try:
            response = requests.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()

        except requests.Timeout:
            raise ModelTimeoutError("Groq request timed out") from None

        except requests.RequestException as e:
            raise ModelTransportError(f"Groq request failed: {e}") from e

        try:
            message = response.json()["choices"][0]["message"]
        except (KeyError, IndexError, ValueError) as e:
            raise ModelTransportError(
                f"Unexpected Groq response format: {e}"
            ) from e

        return self._decode_message(message)

    # ---------------------------------------------------------
    # Wire Format
    # ---------------------------------------------------------

    @staticmethod
    def _encode_message(message: Message) -> Message:
        if "tool_calls" not in message:
            return message

        # OpenAI wire format carries arguments as a JSON string
        encoded = dict(message)
        encoded["tool_calls"] = [
            {
                "id": c["id"],
                "type": "function",
                "function": {
                    "name": c["function"]["name"],
                    "arguments": json.dumps(c["function"]["arguments"]),
                },
            }
            for c in message["tool_calls"]
        ]
        return encoded

    @staticmethod
    def _decode_message(message: Dict[str, Any]) -> ModelResponse:
        calls = []

        for raw in message.get("tool_calls") or []:
            function = raw.get("function", {})
            arguments = function.get("arguments") or "{}"

            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except ValueError:
                    logger.warning("[LLM] Unparseable tool arguments: %s", arguments)

            calls.append(
                ToolCall(
                    name=function.get("name", ""),
                    arguments=arguments,
                    id=raw.get("id") or f"call_{len(calls)}",
                )
            )

        return ModelResponse(content=message.get("content") or "", tool_calls=tuple(calls))
