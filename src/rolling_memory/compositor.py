"""Memory compositor.

Turns the current tier allocation into the text blocks injected into the
host prompt.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from loguru import logger

from .config import LONG_MEMORY_MACRO, SHORT_MEMORY_MACRO, MemoryConfig
from .exclusion import is_eligible
from .interfaces import TokenCounterService
from .models import InclusionTier, MemoryWindowResult, Message

BULLET = "* "

BADGE_SHORT = "Short-term Memory"
BADGE_LONG = "Long-term Memory"
BADGE_REMEMBERED = "Remembered"


def format_summaries(summaries: Iterable[str]) -> str:
    """Bullet-prefix each summary and join them with newlines."""
    return "\n".join(f"{BULLET}{s}" for s in summaries)


def apply_template(template: str, macro: str, text: str) -> str:
    """Substitute ``text`` for every ``{{macro}}`` placeholder in ``template``."""
    pattern = re.compile(r"\{\{\s*" + re.escape(macro) + r"\s*\}\}")
    return pattern.sub(lambda _: text, template)


class MemoryCompositor:
    """Renders tier text from messages in conversation order."""

    def __init__(self, token_counter: TokenCounterService):
        self._token_counter = token_counter

    def concatenate(
        self,
        messages: Sequence[Message],
        config: MemoryConfig,
        tiers: set[InclusionTier],
        start: int | None = None,
        end: int | None = None,
    ) -> str:
        """Join the summaries of messages in ``tiers`` within [start, end].

        Args:
            messages: Chat log in index order
            config: Current memory configuration
            tiers: Tiers to collect
            start: First index (default 0)
            end: Last index (default newest message)

        Returns:
            Bulleted summaries in ascending order, or "" for an invalid range
        """
        if not messages:
            return ""

        start = max(start if start is not None else 0, 0)
        end = min(max(end if end is not None else len(messages) - 1, 0), len(messages) - 1)

        if start > end:
            logger.error(
                f"Cannot concatenate summaries: start index {start} "
                f"is greater than end index {end}"
            )
            return ""

        summaries: list[str] = []
        for message in messages[start : end + 1]:
            if not is_eligible(message, config, self._token_counter):
                continue
            tier = message.memory.inclusion_tier
            if tier not in tiers:
                continue
            if message.memory.summary:
                summaries.append(message.memory.summary)
            else:
                logger.error(
                    f"Message {message.index} does not have a summary, "
                    f"but is marked for inclusion {tier.value}"
                )

        return format_summaries(summaries)

    def render_tier(
        self,
        messages: Sequence[Message],
        config: MemoryConfig,
        tier: InclusionTier,
    ) -> str:
        """Bulleted summaries of a single tier over the whole log."""
        return self.concatenate(messages, config, {tier})

    def render(
        self, messages: Sequence[Message], config: MemoryConfig
    ) -> MemoryWindowResult:
        """Render both tiers and substitute them into their templates."""
        short_memory = self.render_tier(messages, config, InclusionTier.SHORT)
        long_memory = self.render_tier(messages, config, InclusionTier.LONG)
        return MemoryWindowResult(
            short_text=apply_template(
                config.short_term.template, SHORT_MEMORY_MACRO, short_memory
            ),
            long_text=apply_template(
                config.long_term.template, LONG_MEMORY_MACRO, long_memory
            ),
            short_memory=short_memory,
            long_memory=long_memory,
        )


def status_badges(message: Message) -> list[str]:
    """Display labels for a message, mirroring its memory status.

    A message without a tier gets no badges. A message whose last
    summarization failed shows only the error.
    """
    state = message.memory
    if state.last_error:
        return [f"Error: {state.last_error}"]
    if state.inclusion_tier == InclusionTier.NONE:
        return []

    badges = [BADGE_SHORT if state.inclusion_tier == InclusionTier.SHORT else BADGE_LONG]
    if state.remembered:
        badges.append(BADGE_REMEMBERED)
    return badges
