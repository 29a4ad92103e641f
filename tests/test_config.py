import pytest

from convoflow.config import EngineConfig


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.llm_backend == "ollama"
        assert config.max_tool_iterations == 8
        assert config.summarize_every == 6

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CONVOFLOW_LLM_BACKEND", "groq")
        monkeypatch.setenv("CONVOFLOW_MODEL", "llama-3.3-70b")
        monkeypatch.setenv("CONVOFLOW_MAX_TOOL_ITERATIONS", "3")
        monkeypatch.setenv("CONVOFLOW_SUMMARIZE_EVERY", "10")

        config = EngineConfig.from_env()

        assert config.llm_backend == "groq"
        assert config.model == "llama-3.3-70b"
        assert config.max_tool_iterations == 3
        assert config.summarize_every == 10
        assert config.fact_window_turns == 3

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"llm_backend": "cohere"},
            {"max_tool_iterations": 0},
            {"max_tool_iterations": 1},
            {"summarize_every": 0},
            {"max_summary_levels": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)
