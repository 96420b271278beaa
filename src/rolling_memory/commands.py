"""Command surface: thin adapters over the memory engine."""

from __future__ import annotations

from typing import Any

from .engine import MemoryEngine, PassReport
from .models import MemoryWindowResult


class MemoryCommands:
    """User-invocable memory commands."""

    def __init__(self, engine: MemoryEngine):
        self.engine = engine

    def remember(self, index: int | None = None) -> int:
        """Mark a message (newest by default) as a long-term memory."""
        return self.engine.remember_message(index)

    async def initialize_memory(self, replace: bool = False) -> PassReport:
        """Summarize all chat messages."""
        return await self.engine.summarize_chat(replace=replace)

    def refresh(self) -> MemoryWindowResult:
        return self.engine.refresh()

    def log_chat(self) -> list[dict[str, Any]]:
        """Dump the chat with its memory state to the log."""
        return self.engine.dump_chat()
