"""
Reasoning-model transport layer.

Exposes:
- LLMClient (abstract interface)
- OllamaClient (local backend)
- GroqClient (remote backend)
- ScriptedLLMClient (deterministic stub for tests and replays)
"""

from .llm_client import LLMClient, ModelResponse
from .ollama_client import OllamaClient
from .groq_client import GroqClient
from .scripted_client import ScriptedLLMClient, LLMRequest, text_reply, tool_reply
from .factory import create_llm_client

__all__ = [
    "LLMClient",
    "ModelResponse",
    "OllamaClient",
    "GroqClient",
    "ScriptedLLMClient",
    "LLMRequest",
    "text_reply",
    "tool_reply",
    "create_llm_client",
]
