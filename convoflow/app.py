from typing import Iterable, Optional

from .config import EngineConfig
from .engine.core import TurnEngine
from .engine.llm.factory import create_llm_client
from .engine.llm.llm_client import LLMClient
from .flow.graph import FlowGraph
from .tools.schema import Tool


class ConvoFlowApp:
    """
    Top-level facade for constructing a TurnEngine.

    Separates framework-owned wiring (prompting, tool loop, transition
    state machine, memory curation) from consumer-owned pieces: the flow
    graph, the model backend and any retrieval tools.

    Construction is pure assembly. Nothing is registered globally and
    the returned engine holds no conversation state; callers thread
    ``ExecutionContext`` / ``ExecutionResult`` themselves.
    """

    @staticmethod
    def create(
        *,
        graph: FlowGraph,
        config: Optional[EngineConfig] = None,
        llm: Optional[LLMClient] = None,
        retrieval_tools: Iterable[Tool] = (),
    ) -> TurnEngine:
        """
        Construct a fully wired TurnEngine.

        Parameters
        ----------
        graph : FlowGraph
            Validated flow definition the engine runs against.

        config : EngineConfig | None
            Engine settings. Defaults to ``EngineConfig.from_env()``.

        llm : LLMClient | None
            Reasoning-model client. When omitted, one is built from
            ``config.llm_backend`` and ``config.model``.

        retrieval_tools : Iterable[Tool]
            Consumer-provided tools offered to the model next to the
            built-in transition and history tools.
        """

        config = config or EngineConfig.from_env()
        llm = llm or create_llm_client(config)

        return TurnEngine(
            graph=graph,
            llm=llm,
            retrieval_tools=retrieval_tools,
            config=config,
        )
