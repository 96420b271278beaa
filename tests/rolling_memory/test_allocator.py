"""Tests for the two-tier InclusionAllocator."""

from __future__ import annotations

import pytest

from rolling_memory.allocator import InclusionAllocator, has_usable_summary
from rolling_memory.compositor import MemoryCompositor
from rolling_memory.config import MemoryConfig, TierConfig
from rolling_memory.models import InclusionTier, SenderKind
from rolling_memory.token_budget import TokenBudget, calculate_budget


def summary_of(size: int, tag: str = "s") -> str:
    return " ".join([tag] * size)


@pytest.fixture
def allocator(token_counter):
    return InclusionAllocator(token_counter)


@pytest.fixture
def compositor(token_counter):
    return MemoryCompositor(token_counter)


def config_with(short: float = 0.1, long: float = 0.1, **kwargs) -> MemoryConfig:
    return MemoryConfig(
        short_term=TierConfig(template="{{short_memory}}", context_limit=short),
        long_term=TierConfig(template="{{long_memory}}", context_limit=long),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Worked scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_three_messages_all_short_with_overshoot(self, allocator, make_message):
        """Limit 100, three 40-token summaries: the oldest overshoots but stays short."""
        config = config_with(short=0.1)
        budget = calculate_budget(config, 1000)
        assert budget.short_limit == 100
        messages = [make_message(i, summary=summary_of(40)) for i in range(3)]

        result = allocator.allocate(messages, budget, config)

        assert result.indices(InclusionTier.SHORT) == [0, 1, 2]
        assert result.indices(InclusionTier.LONG) == []
        assert result.short_tokens > budget.short_limit

    def test_remembered_message_overshoots_zero_long_limit(
        self, allocator, make_message
    ):
        """With a long limit of 0, exactly one remembered message still enters."""
        config = config_with(short=0.1, long=0.0)
        budget = calculate_budget(config, 1000)
        assert budget.long_limit == 0
        messages = [
            make_message(0, summary=summary_of(60), remembered=True),
            make_message(1, summary=summary_of(60), remembered=True),
            make_message(2, summary=summary_of(60)),
            make_message(3, summary=summary_of(60)),
        ]

        result = allocator.allocate(messages, budget, config)

        assert result.tiers == {
            3: InclusionTier.SHORT,
            2: InclusionTier.SHORT,
            1: InclusionTier.LONG,
            0: InclusionTier.NONE,
        }

    def test_below_threshold_excluded_despite_cached_summary(
        self, allocator, make_message
    ):
        config = config_with(message_length_threshold=10)
        message = make_message(
            0, text=" ".join(["short"] * 9), summary="Something happened."
        )

        result = allocator.allocate([message], TokenBudget(100, 100), config)

        assert result.tiers[0] == InclusionTier.NONE
        assert message.memory.inclusion_tier == InclusionTier.NONE
        assert result.missing_summary == []


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class TestAllocationRules:
    def test_non_remembered_after_short_overflow_excluded(
        self, allocator, make_message
    ):
        config = config_with()
        messages = [make_message(i, summary=summary_of(60)) for i in range(3)]

        result = allocator.allocate(messages, TokenBudget(100, 100), config)

        assert result.tiers[0] == InclusionTier.NONE
        assert result.indices(InclusionTier.SHORT) == [1, 2]

    def test_missing_summary_excluded_and_recorded(self, allocator, make_message):
        config = config_with()
        messages = [
            make_message(0, summary="Earlier."),
            make_message(1),
            make_message(2, summary="Latest."),
        ]

        result = allocator.allocate(messages, TokenBudget(100, 100), config)

        assert result.tiers[1] == InclusionTier.NONE
        assert result.missing_summary == [1]
        assert result.indices(InclusionTier.SHORT) == [0, 2]

    def test_failed_summary_forced_to_none(self, allocator, make_message):
        config = config_with()
        message = make_message(0, summary="Old summary.")
        message.memory.last_error = "generation failed"

        result = allocator.allocate([message], TokenBudget(100, 100), config)

        assert result.tiers[0] == InclusionTier.NONE
        assert result.missing_summary == [0]

    def test_stale_summary_not_usable(self, allocator, make_message):
        config = config_with()
        message = make_message(0, summary="Old summary.", stale=True)

        assert not has_usable_summary(message)
        result = allocator.allocate([message], TokenBudget(100, 100), config)
        assert result.tiers[0] == InclusionTier.NONE

    def test_system_and_user_messages_skipped(self, allocator, make_message):
        config = config_with()
        messages = [
            make_message(0, summary="User said hi.", sender_kind=SenderKind.USER),
            make_message(1, summary="Hidden.", sender_kind=SenderKind.SYSTEM),
            make_message(2, summary="Reply."),
        ]

        result = allocator.allocate(messages, TokenBudget(100, 100), config)

        assert result.indices(InclusionTier.SHORT) == [2]
        assert result.missing_summary == []

    def test_previous_tier_recomputed_from_scratch(self, allocator, make_message):
        """A stale long tier from a previous refresh is overwritten."""
        config = config_with()
        message = make_message(0, summary="Remembered once.")
        message.memory.inclusion_tier = InclusionTier.LONG

        allocator.allocate([message], TokenBudget(100, 100), config)

        assert message.memory.inclusion_tier == InclusionTier.SHORT

    def test_empty_log(self, allocator):
        result = allocator.allocate([], TokenBudget(100, 100), config_with())
        assert result.tiers == {}


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


SIZES = [7, 31, 3, 18, 44, 12, 25, 9, 50, 16]


class TestAllocationProperties:
    def _messages(self, make_message, remembered_every: int = 3):
        return [
            make_message(
                i,
                summary=summary_of(size, tag=f"t{i}"),
                remembered=(i % remembered_every == 0),
            )
            for i, size in enumerate(SIZES)
        ]

    def test_deterministic(self, allocator, make_message):
        config = config_with(short=0.05, long=0.04)
        budget = calculate_budget(config, 1000)
        first = allocator.allocate(self._messages(make_message), budget, config)
        second = allocator.allocate(self._messages(make_message), budget, config)
        assert first.tiers == second.tiers

    @pytest.mark.parametrize("tier", [InclusionTier.SHORT, InclusionTier.LONG])
    @pytest.mark.parametrize("fraction", [0.0, 0.02, 0.05, 0.1, 0.3])
    def test_overshoot_bounded_by_one_message(
        self, allocator, compositor, token_counter, make_message, tier, fraction
    ):
        config = config_with(short=fraction, long=fraction)
        budget = calculate_budget(config, 1000)
        messages = self._messages(make_message)

        allocator.allocate(messages, budget, config)
        rendered = compositor.render_tier(messages, config, tier)
        members = [m for m in messages if m.memory.inclusion_tier == tier]
        if not members:
            return
        boundary = min(members, key=lambda m: m.index)
        limit = budget.short_limit if tier == InclusionTier.SHORT else budget.long_limit

        assert token_counter.count(rendered) <= limit + token_counter.count(
            f"* {boundary.memory.summary}"
        )

    def test_short_count_monotonic_in_fraction(self, allocator, make_message):
        counts = []
        for fraction in [0.0, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0]:
            config = config_with(short=fraction)
            result = allocator.allocate(
                self._messages(make_message), calculate_budget(config, 1000), config
            )
            counts.append(len(result.indices(InclusionTier.SHORT)))
        assert counts == sorted(counts)

    def test_long_count_monotonic_in_fraction(self, allocator, make_message):
        counts = []
        for fraction in [0.0, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0]:
            config = config_with(short=0.02, long=fraction)
            result = allocator.allocate(
                self._messages(make_message), calculate_budget(config, 1000), config
            )
            counts.append(len(result.indices(InclusionTier.LONG)))
        assert counts == sorted(counts)

    def test_long_tier_only_remembered(self, allocator, make_message):
        config = config_with(short=0.02, long=1.0)
        messages = self._messages(make_message)
        allocator.allocate(messages, calculate_budget(config, 1000), config)
        for m in messages:
            if m.memory.inclusion_tier == InclusionTier.LONG:
                assert m.memory.remembered
