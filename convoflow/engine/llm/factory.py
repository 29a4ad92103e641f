from convoflow.config import EngineConfig

from .llm_client import LLMClient


def create_llm_client(config: EngineConfig) -> LLMClient:
    """
    Factory for the reasoning-model transport.

    Backend selection is driven by configuration:
    - "ollama" → local Ollama server
    - "groq"   → Groq OpenAI-compatible API (needs GROQ_API_KEY)
    """

    # Lazy imports prevent unnecessary dependency loading
    if config.llm_backend == "ollama":
        from .ollama_client import OllamaClient
        return OllamaClient(model=config.model) if config.model else OllamaClient()

    if config.llm_backend == "groq":
        from .groq_client import GroqClient
        return GroqClient(model=config.model) if config.model else GroqClient()

    raise ValueError(
        f"Unsupported llm_backend: {config.llm_backend}"
    )
