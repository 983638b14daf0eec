from __future__ import annotations

"""
Prompt Token Counting.

Counts tokens of an assembled prompt with tiktoken's o200k_base encoding
(the GPT-4o family). When the encoder cannot be used, for instance because
its vocabulary cannot be downloaded, counting degrades to a character
density estimate instead of failing.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Dict

import tiktoken

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN_AVG = 4
DEFAULT_ENCODING = "o200k_base"
FALLBACK_ENCODING = "cl100k_base"

# -----------------------------------------------------------------------------
# STRATEGIES
# -----------------------------------------------------------------------------

class TokenizerStrategy(ABC):
    """Interface of a token counting algorithm."""

    @abstractmethod
    def count(self, text: str) -> int:
        pass


class HeuristicStrategy(TokenizerStrategy):
    """Estimate tokens from the average characters-per-token ratio."""

    def count(self, text: str) -> int:
        return math.ceil(len(text) / CHARS_PER_TOKEN_AVG)


class TiktokenStrategy(TokenizerStrategy):
    """
    Local BPE encoding via tiktoken.

    Encoders are cached per instance once loaded.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        self.encoding_name = encoding_name
        self._encodings: Dict[str, "tiktoken.Encoding"] = {}

    def _encoding(self) -> "tiktoken.Encoding":
        if self.encoding_name not in self._encodings:
            try:
                encoding = tiktoken.get_encoding(self.encoding_name)
            except ValueError:
                encoding = tiktoken.get_encoding(FALLBACK_ENCODING)
            self._encodings[self.encoding_name] = encoding
        return self._encodings[self.encoding_name]

    def count(self, text: str) -> int:
        return len(self._encoding().encode(text, disallowed_special=()))

# -----------------------------------------------------------------------------
# SERVICE
# -----------------------------------------------------------------------------

class TokenizerService:
    """Route counting to tiktoken, falling back to the heuristic on failure."""

    def __init__(self) -> None:
        self.primary: TokenizerStrategy = TiktokenStrategy()
        self.heuristic = HeuristicStrategy()

    def count(self, text: str) -> int:
        """
        Count the tokens of text.

        Args:
            text: Prompt text.

        Returns:
            int: Token count (0 for empty text).
        """
        if not text:
            return 0
        try:
            return self.primary.count(text)
        except Exception as e:
            logger.warning(f"Tokenizer {type(self.primary).__name__} failed: {e}. Using heuristic fallback.")
            return self.heuristic.count(text)

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

_SERVICE_INSTANCE = TokenizerService()


def count_tokens(text: str) -> int:
    """
    Count prompt tokens with the shared TokenizerService.

    Args:
        text: Input string content.

    Returns:
        int: Total token count.
    """
    return _SERVICE_INSTANCE.count(text)
