"""Memory Engine - facade over the rolling memory components.

This module provides the MemoryEngine class that host applications use.
It ties together summarization, tier allocation, rendering and prompt
injection for the active chat.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from .allocator import AllocationResult, InclusionAllocator
from .compositor import MemoryCompositor, status_badges
from .config import LONG_MEMORY_MACRO, SHORT_MEMORY_MACRO, MemoryConfig
from .exceptions import GenerationAbortedError, MessageNotFoundError
from .interfaces import (
    ConversationStore,
    GenerationService,
    HostControls,
    PromptInjector,
    TokenCounterService,
)
from .logging_setup import configure_logging
from .macros import MacroRegistry
from .models import InclusionTier, MemoryWindowResult, SummaryOutcome
from .scheduler import Debouncer
from .store import InMemoryPromptInjector, SimpleHost
from .summarizer import Summarizer
from .token_budget import TokenBudget, calculate_budget

SHORT_INJECTION_KEY = "rolling_memory_short"
LONG_INJECTION_KEY = "rolling_memory_long"

SUMMARY_FIELDS = {"summary", "summary_hash", "last_error"}
TIER_FIELDS = {"inclusion_tier"}


@dataclass
class PassReport:
    """Outcome of one summarization pass over a chat."""

    chat_id: str
    outcomes: dict[int, SummaryOutcome] = field(default_factory=dict)
    discarded: list[int] = field(default_factory=list)
    interrupted: bool = False  # chat switched mid-pass

    def count(self, outcome: SummaryOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o == outcome)

    @property
    def failed(self) -> list[int]:
        return sorted(
            i for i, o in self.outcomes.items() if o == SummaryOutcome.FAILED
        )


class MemoryEngine:
    """Rolling memory facade.

    Provides:
    - Sequential summarization passes over the chat (one per chat at a time)
    - Two-tier budgeted allocation recomputed on every refresh
    - Rendering into the host's prompt injection slots and macros
    - Debounced refresh for bursts of host notifications
    """

    def __init__(
        self,
        store: ConversationStore,
        token_counter: TokenCounterService,
        generator: GenerationService,
        config: MemoryConfig | None = None,
        injector: PromptInjector | None = None,
        host: HostControls | None = None,
        macros: MacroRegistry | None = None,
        manage_logging: bool = False,
    ):
        """Initialize memory engine.

        Args:
            store: Host chat log
            token_counter: Tokenizer and context size of the active model
            generator: Text generation backend used for summaries
            config: Memory configuration (uses defaults if not provided)
            injector: Prompt injection surface (in-memory if not provided)
            host: Host status and input controls
            macros: Macro registry to register the tier placeholders in
            manage_logging: Reconfigure loguru from ``config.debug_mode``
        """
        self._config = config or MemoryConfig()
        self.store = store
        self.token_counter = token_counter
        self.injector = injector or InMemoryPromptInjector()
        self.host = host or SimpleHost()
        self.macros = macros or MacroRegistry()
        self._manage_logging = manage_logging

        self.summarizer = Summarizer(generator, token_counter)
        self.allocator = InclusionAllocator(token_counter)
        self.compositor = MemoryCompositor(token_counter)

        self._refresh_debouncer = Debouncer(
            self.refresh, delay=self._config.refresh_debounce_seconds
        )
        self._pass_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}  # passes holding or awaiting a lock
        self.last_result = MemoryWindowResult()
        self.last_allocation = AllocationResult()

        self.macros.register(SHORT_MEMORY_MACRO, self.get_short_memory)
        self.macros.register(LONG_MEMORY_MACRO, self.get_long_memory)

        if self._manage_logging:
            configure_logging(self._config.debug_mode)

        logger.debug(f"MemoryEngine config: {self._config.model_dump()}")

    @property
    def config(self) -> MemoryConfig:
        return self._config

    def update_config(self, config: MemoryConfig) -> None:
        """Swap in a new configuration and schedule a refresh."""
        self._config = config
        self._refresh_debouncer.delay = config.refresh_debounce_seconds
        if self._manage_logging:
            configure_logging(config.debug_mode)
        logger.debug("Memory config updated, scheduling refresh")
        self.refresh_debounced()

    def budget(self) -> TokenBudget:
        return calculate_budget(self._config, self.token_counter.context_size())

    def _acquire_lock_ref(self, chat_id: str) -> asyncio.Lock:
        """Get the pass lock of a chat and count the caller as a user."""
        if chat_id not in self._pass_locks:
            self._pass_locks[chat_id] = asyncio.Lock()
        self._lock_users[chat_id] = self._lock_users.get(chat_id, 0) + 1
        return self._pass_locks[chat_id]

    def _release_lock_ref(self, chat_id: str) -> None:
        """Drop a chat's lock once no pass holds it or waits on it."""
        self._lock_users[chat_id] -= 1
        if self._lock_users[chat_id] == 0:
            del self._lock_users[chat_id]
            del self._pass_locks[chat_id]

    # Refresh

    def refresh(self) -> MemoryWindowResult:
        """Recompute allocation, render both tiers and re-set the injections."""
        self._refresh_debouncer.cancel()
        config = self._config
        snapshot = self.store.snapshot()
        budget = self.budget()

        self.last_allocation = self.allocator.allocate(
            snapshot.messages, budget, config
        )
        for message in snapshot.messages:
            self.store.commit_memory(
                snapshot.chat_id, message.index, message.text, message.memory,
                fields=TIER_FIELDS,
            )

        result = self.compositor.render(snapshot.messages, config)
        self.injector.set_injection(
            LONG_INJECTION_KEY,
            result.long_text,
            config.long_term.position,
            config.long_term.depth,
            config.long_term.role,
            config.long_term.scan,
        )
        self.injector.set_injection(
            SHORT_INJECTION_KEY,
            result.short_text,
            config.short_term.position,
            config.short_term.depth,
            config.short_term.role,
            config.short_term.scan,
        )
        self.last_result = result
        return result

    def refresh_debounced(self) -> None:
        self._refresh_debouncer.trigger()

    def discard_pending_refresh(self) -> bool:
        return self._refresh_debouncer.cancel()

    @property
    def refresh_pending(self) -> bool:
        return self._refresh_debouncer.pending

    # Summarization

    async def summarize_chat(self, replace: bool = False) -> PassReport:
        """Summarize every message of the active chat, then refresh.

        Messages are processed oldest to newest, one generation call at a
        time. Passes for the same chat queue behind each other. The refresh
        also runs when the backend aborts the pass.

        Args:
            replace: Regenerate summaries even when the cache is fresh

        Returns:
            Per-message outcomes of the pass

        Raises:
            GenerationAbortedError: If the backend aborts the pass
        """
        chat_id = self.store.chat_id or ""
        lock = self._acquire_lock_ref(chat_id)
        try:
            async with lock:
                report = await self._run_pass(chat_id, replace)
        except GenerationAbortedError as e:
            logger.error(f"Summarization of chat {chat_id!r} aborted: {e.reason}")
            raise
        finally:
            self._release_lock_ref(chat_id)
            # summaries committed before an abort still reach the injections
            self.refresh()
        return report

    async def _run_pass(self, chat_id: str, replace: bool) -> PassReport:
        config = self._config
        report = PassReport(chat_id=chat_id)
        logger.info(f"Summarizing chat {chat_id!r} (replace={replace})")

        if config.block_chat:
            self.host.deactivate_input()
        try:
            snapshot = self.store.snapshot()
            for message in snapshot.messages:
                if self.store.chat_id != chat_id:
                    logger.info(
                        f"Chat switched during pass over {chat_id!r}, "
                        f"stopping at message {message.index}"
                    )
                    report.interrupted = True
                    break

                outcome = await self.summarizer.ensure_summarized(
                    message, config, force_replace=replace
                )
                report.outcomes[message.index] = outcome
                if outcome in (SummaryOutcome.SUMMARIZED, SummaryOutcome.FAILED):
                    committed = self.store.commit_memory(
                        chat_id, message.index, message.text, message.memory,
                        fields=SUMMARY_FIELDS,
                    )
                    if not committed:
                        report.discarded.append(message.index)
        finally:
            if config.block_chat:
                self.host.activate_input()

        logger.info(
            f"Chat summarized: "
            f"{report.count(SummaryOutcome.SUMMARIZED)} new, "
            f"{report.count(SummaryOutcome.CACHE_HIT)} cached, "
            f"{report.count(SummaryOutcome.FAILED)} failed, "
            f"{len(report.discarded)} discarded"
        )
        return report

    # Message operations

    def remember_message(self, index: int | None = None) -> int:
        """Flag a message as remembered (newest message by default).

        Returns:
            Index of the remembered message

        Raises:
            MessageNotFoundError: If the chat is empty or the index is out of range
        """
        snapshot = self.store.snapshot()
        if not snapshot.messages:
            raise MessageNotFoundError(index or 0, 0)
        index = max(index if index is not None else len(snapshot) - 1, 0)
        if index >= len(snapshot):
            raise MessageNotFoundError(index, len(snapshot))

        message = snapshot.messages[index]
        message.memory.remembered = True
        self.store.commit_memory(
            snapshot.chat_id, message.index, message.text, message.memory,
            fields={"remembered"},
        )
        logger.info(f"Set message {index} to be remembered in long-term memory")
        self.refresh_debounced()
        return index

    # Queries

    def _render_tier(self, tier: InclusionTier) -> str:
        snapshot = self.store.snapshot()
        return self.compositor.render_tier(snapshot.messages, self._config, tier)

    def get_short_memory(self) -> str:
        return self._render_tier(InclusionTier.SHORT)

    def get_long_memory(self) -> str:
        return self._render_tier(InclusionTier.LONG)

    def message_statuses(self) -> dict[int, list[str]]:
        """Display badges for every message of the active chat."""
        return {m.index: status_badges(m) for m in self.store.snapshot().messages}

    def token_limits(self) -> dict[str, int]:
        budget = self.budget()
        return {
            "context_size": self.token_counter.context_size(),
            "short_limit": budget.short_limit,
            "long_limit": budget.long_limit,
        }

    def dump_chat(self) -> list[dict[str, Any]]:
        """Diagnostic view of the chat with its memory state."""
        snapshot = self.store.snapshot()
        rows = [
            {
                "index": m.index,
                "sender": m.sender_kind.value,
                "name": m.name,
                "text": m.text,
                "memory": m.memory.model_dump(mode="json"),
            }
            for m in snapshot.messages
        ]
        logger.info(f"CHAT {snapshot.chat_id!r}: {rows}")
        return rows
