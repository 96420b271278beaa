"""Token counting with tiktoken."""

from __future__ import annotations

import tiktoken
from loguru import logger

DEFAULT_ENCODING = "cl100k_base"


class TokenCounter:
    """Counts tokens for budget management.

    The encoder is resolved lazily on first use so that constructing a
    counter never touches the tiktoken cache.
    """

    def __init__(self, model: str = "gpt-4", context_size: int = 8192):
        self._model = model
        self._context_size = context_size
        self._encoder: tiktoken.Encoding | None = None

    def _get_encoder(self) -> tiktoken.Encoding:
        if self._encoder is None:
            try:
                self._encoder = tiktoken.encoding_for_model(self._model)
            except KeyError:
                logger.debug(
                    f"No tiktoken encoding registered for {self._model!r}, "
                    f"using {DEFAULT_ENCODING}"
                )
                self._encoder = tiktoken.get_encoding(DEFAULT_ENCODING)
        return self._encoder

    def count(self, text: str) -> int:
        """Count tokens in a text string."""
        if not text:
            return 0
        return len(self._get_encoder().encode(text))

    def context_size(self) -> int:
        """Context window size of the active model."""
        return self._context_size

    def set_context_size(self, context_size: int) -> None:
        self._context_size = context_size
