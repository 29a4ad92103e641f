from .assembler import AssembledPrompt, PromptAssembler, select_history_window
from .tokens import estimate_tokens

__all__ = [
    "AssembledPrompt",
    "PromptAssembler",
    "select_history_window",
    "estimate_tokens",
]
