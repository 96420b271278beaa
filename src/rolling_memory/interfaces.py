"""Interfaces to the host application.

The memory engine never owns the chat log, the tokenizer, or the generation
backend. It reaches them only through the protocols below.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .config import InjectionPosition, InjectionRole
from .models import ChatSnapshot, MemoryState


@runtime_checkable
class TokenCounterService(Protocol):
    """Tokenizer for the active model. Both queries are deterministic."""

    def count(self, text: str) -> int:
        ...

    def context_size(self) -> int:
        ...


@runtime_checkable
class GenerationService(Protocol):
    """Text generation backend.

    An empty string is the ordinary failure signal. Implementations raise
    ``GenerationAbortedError`` only for malformed configuration.
    """

    async def generate_raw(self, prompt: str, max_length: int) -> str:
        """Generate from the bare prompt."""
        ...

    async def generate_quiet(self, prompt: str, max_length: int) -> str:
        """Generate in background mode, with ambient world context added."""
        ...


@runtime_checkable
class ConversationStore(Protocol):
    """Ordered, mutable chat log owned by the host."""

    @property
    def chat_id(self) -> str | None:
        """Identifier of the active chat, or None when no chat is open."""
        ...

    def snapshot(self) -> ChatSnapshot:
        """Copy the active log, memory states included."""
        ...

    def commit_memory(
        self,
        chat_id: str,
        index: int,
        text: str,
        state: MemoryState,
        fields: set[str] | None = None,
    ) -> bool:
        """Write a memory state back to a message.

        Only ``fields`` are overwritten when given; other fields keep their
        stored values. The write is dropped (returning False) when
        ``chat_id`` is no longer active, or the message at ``index`` no
        longer holds ``text``.
        """
        ...


@runtime_checkable
class PromptInjector(Protocol):
    """Host prompt-injection surface. Each key is overwritten, never appended."""

    def set_injection(
        self,
        key: str,
        text: str,
        position: InjectionPosition,
        depth: int,
        role: InjectionRole,
        scan: bool,
    ) -> None:
        ...


@runtime_checkable
class HostControls(Protocol):
    """Host runtime status and input controls."""

    def is_streaming(self) -> bool:
        ...

    def has_active_chat(self) -> bool:
        ...

    def deactivate_input(self) -> None:
        ...

    def activate_input(self) -> None:
        ...
