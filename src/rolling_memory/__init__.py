"""
Rolling Memory - budgeted summary memory for long conversations

Keeps a per-message summary of the chat and injects only a bounded digest
into the generation prompt, split across two tiers:

- Short-term: the most recent summaries, up to a fraction of the context
- Long-term: older messages the user explicitly marked as remembered
"""

from .allocator import AllocationResult, InclusionAllocator
from .commands import MemoryCommands
from .compositor import MemoryCompositor, status_badges
from .config import InjectionPosition, InjectionRole, MemoryConfig, TierConfig
from .engine import MemoryEngine, PassReport
from .events import ChatEvent, EventReactor, ReactorAction, decide_action
from .exceptions import GenerationAbortedError, MessageNotFoundError, RollingMemoryError
from .exclusion import is_eligible
from .macros import MacroRegistry
from .models import (
    ChatSnapshot,
    InclusionTier,
    MemoryState,
    MemoryWindowResult,
    Message,
    SenderKind,
    SummaryOutcome,
)
from .store import InMemoryConversationStore, InMemoryPromptInjector, SimpleHost
from .summarizer import Summarizer
from .summary_cache import SummaryCache, content_hash
from .token_budget import TokenBudget, budget_for, calculate_budget
from .token_counter import TokenCounter

__all__ = [
    "AllocationResult",
    "InclusionAllocator",
    "MemoryCommands",
    "MemoryCompositor",
    "status_badges",
    "InjectionPosition",
    "InjectionRole",
    "MemoryConfig",
    "TierConfig",
    "MemoryEngine",
    "PassReport",
    "ChatEvent",
    "EventReactor",
    "ReactorAction",
    "decide_action",
    "GenerationAbortedError",
    "MessageNotFoundError",
    "RollingMemoryError",
    "is_eligible",
    "MacroRegistry",
    "ChatSnapshot",
    "InclusionTier",
    "MemoryState",
    "MemoryWindowResult",
    "Message",
    "SenderKind",
    "SummaryOutcome",
    "InMemoryConversationStore",
    "InMemoryPromptInjector",
    "SimpleHost",
    "Summarizer",
    "SummaryCache",
    "content_hash",
    "TokenBudget",
    "budget_for",
    "calculate_budget",
    "TokenCounter",
]
