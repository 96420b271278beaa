"""Content-addressed summary cache.

Each message carries its own last summary together with the hash of the text
that produced it. A summary is reusable only while that hash still matches
the message text.
"""

from __future__ import annotations

import hashlib
from typing import Any

from loguru import logger

from .models import InclusionTier, MemoryState, Message

GENERATION_FAILED = "generation failed"


def content_hash(text: str) -> str:
    """Stable hash of a message text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class SummaryCache:
    """Cache policy over per-message memory states.

    The summaries themselves live on the messages; this class decides when
    they may be reused and keeps hit/miss statistics.
    """

    def __init__(self) -> None:
        self._stats = {
            "hits": 0,
            "misses": 0,
            "stores": 0,
            "failures": 0,
        }

    def is_fresh(self, message: Message) -> bool:
        """True if the stored summary was produced from the current text.

        A summary whose last regeneration failed is never fresh, so the next
        pass retries it.
        """
        state = message.memory
        if state.last_error:
            return False
        return bool(state.summary) and state.summary_hash == content_hash(
            message.text
        )

    def lookup(self, message: Message, force_replace: bool = False) -> str | None:
        """Return the reusable summary, or None if one must be generated.

        Args:
            message: Message to look up
            force_replace: Treat every entry as stale

        Returns:
            The cached summary on a hit, else None
        """
        if not force_replace and self.is_fresh(message):
            self._stats["hits"] += 1
            return message.memory.summary
        self._stats["misses"] += 1
        return None

    def store(self, state: MemoryState, text: str, summary: str) -> None:
        """Record a freshly generated summary for ``text``."""
        state.summary = summary
        state.summary_hash = content_hash(text)
        state.last_error = None
        self._stats["stores"] += 1

    def record_failure(self, state: MemoryState, reason: str = GENERATION_FAILED) -> None:
        """Mark a failed generation, keeping any previous summary."""
        state.last_error = reason
        state.inclusion_tier = InclusionTier.NONE
        self._stats["failures"] += 1
        logger.debug(f"Recorded summary failure: {reason}")

    def stats(self) -> dict[str, Any]:
        """Cache statistics, including the hit rate."""
        total = self._stats["hits"] + self._stats["misses"]
        return {
            **self._stats,
            "hit_rate": self._stats["hits"] / total if total else 0.0,
        }
