"""Two-tier inclusion allocator.

Walks the chat log from newest to oldest and greedily assigns each eligible,
summarized message to the short-term window until its budget is exceeded,
then admits only remembered messages into the long-term window until that
budget is exceeded too. Budgets are checked after a message is added, so
each tier may overshoot its limit by exactly one message.

The allocation is recomputed from scratch on every refresh.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from .compositor import format_summaries
from .config import MemoryConfig
from .exclusion import is_eligible
from .interfaces import TokenCounterService
from .models import InclusionTier, Message
from .summary_cache import content_hash
from .token_budget import TokenBudget


@dataclass
class AllocationResult:
    """Tier assignment for every message of a snapshot."""

    tiers: dict[int, InclusionTier] = field(default_factory=dict)
    missing_summary: list[int] = field(default_factory=list)
    short_tokens: int = 0
    long_tokens: int = 0

    def indices(self, tier: InclusionTier) -> list[int]:
        """Indices assigned to ``tier`` in ascending order."""
        return sorted(i for i, t in self.tiers.items() if t == tier)


def has_usable_summary(message: Message) -> bool:
    """A summary is usable if present, current, and not marked as failed."""
    state = message.memory
    return (
        bool(state.summary)
        and not state.last_error
        and state.summary_hash == content_hash(message.text)
    )


class InclusionAllocator:
    """Assigns messages to the short-term and long-term memory tiers."""

    def __init__(self, token_counter: TokenCounterService):
        self._token_counter = token_counter

    def _window_tokens(self, window: list[str]) -> int:
        # window is collected newest-first; measure it in conversation order
        return self._token_counter.count(format_summaries(reversed(window)))

    def allocate(
        self,
        messages: Sequence[Message],
        budget: TokenBudget,
        config: MemoryConfig,
    ) -> AllocationResult:
        """Compute the tier of every message and write it to its memory state.

        Args:
            messages: Chat log in index order
            budget: Token ceilings for both tiers
            config: Current memory configuration

        Returns:
            Allocation result keyed by message index
        """
        result = AllocationResult()
        short_window: list[str] = []
        long_window: list[str] = []
        short_limit_reached = False
        long_limit_reached = False

        for message in reversed(messages):
            tier = InclusionTier.NONE

            if not is_eligible(message, config, self._token_counter):
                pass
            elif not has_usable_summary(message):
                result.missing_summary.append(message.index)
                logger.error(
                    f"Message {message.index} does not have a summary, "
                    f"excluding it from memory injection"
                )
            elif not short_limit_reached:
                tier = InclusionTier.SHORT
                short_window.append(message.memory.summary)
                result.short_tokens = self._window_tokens(short_window)
                if result.short_tokens > budget.short_limit:
                    short_limit_reached = True
            elif message.memory.remembered and not long_limit_reached:
                tier = InclusionTier.LONG
                long_window.append(message.memory.summary)
                result.long_tokens = self._window_tokens(long_window)
                if result.long_tokens > budget.long_limit:
                    long_limit_reached = True

            message.memory.inclusion_tier = tier
            result.tiers[message.index] = tier

        logger.info(
            f"Memory allocation: short={len(short_window)} msgs "
            f"({result.short_tokens}/{budget.short_limit} tok), "
            f"long={len(long_window)} msgs "
            f"({result.long_tokens}/{budget.long_limit} tok), "
            f"missing={len(result.missing_summary)}"
        )
        return result
