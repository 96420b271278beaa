"""Token budget calculator for the two memory tiers."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .config import MemoryConfig


def budget_for(context_size: int, fraction: float) -> int:
    """Absolute token ceiling for a tier: floor(context_size * fraction)."""
    return math.floor(context_size * fraction)


@dataclass(frozen=True)
class TokenBudget:
    """Calculated token ceilings for each tier."""

    short_limit: int
    long_limit: int


def calculate_budget(config: MemoryConfig, context_size: int) -> TokenBudget:
    """Derive both tier limits from the configured context fractions.

    A fraction of 0 yields a limit of 0. The allocator still admits a
    single boundary message in that case.
    """
    return TokenBudget(
        short_limit=budget_for(context_size, config.short_term.context_limit),
        long_limit=budget_for(context_size, config.long_term.context_limit),
    )
