TOKENS_PER_WORD = 1.3


def estimate_tokens(text: str) -> int:
    """
    Rough token estimate for budget decisions.

    Uses a word-to-token ratio of 1.3; good enough to keep the history
    window under a configured ceiling without a tokenizer dependency.
    """
    if not text:
        return 0
    return int(len(text.split()) * TOKENS_PER_WORD) + 1
