"""Rolling memory core data models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class SenderKind(str, Enum):
    USER = "user"
    CHARACTER = "character"
    SYSTEM = "system"  # hidden/system messages never enter memory


class InclusionTier(str, Enum):
    NONE = "none"
    SHORT = "short"
    LONG = "long"


class SummaryOutcome(str, Enum):
    """Result of a single ensure-summarized call."""

    SKIPPED = "skipped"  # not eligible
    CACHE_HIT = "cache_hit"
    SUMMARIZED = "summarized"
    FAILED = "failed"


class MemoryState(BaseModel):
    """Memory metadata attached to a single message.

    Stored in the host's per-message attachment bag and validated every time
    it is read back.
    """

    summary: str | None = None
    summary_hash: str | None = None
    remembered: bool = False
    inclusion_tier: InclusionTier = InclusionTier.NONE
    last_error: str | None = None

    @classmethod
    def from_attachment(cls, data: Any) -> "MemoryState":
        """Validate a raw attachment, falling back to a fresh state.

        Args:
            data: Whatever the host stored under the memory key (may be None)

        Returns:
            Validated memory state
        """
        if data is None:
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding invalid memory attachment: {e}")
            return cls()

    def to_attachment(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Message(BaseModel):
    """A single chat message as seen by the memory engine."""

    model_config = ConfigDict(frozen=True)

    index: int
    text: str
    sender_kind: SenderKind = SenderKind.CHARACTER
    name: str = ""
    memory: MemoryState = Field(default_factory=MemoryState)

    @property
    def is_user(self) -> bool:
        return self.sender_kind == SenderKind.USER

    @property
    def is_system(self) -> bool:
        return self.sender_kind == SenderKind.SYSTEM


class ChatSnapshot(BaseModel):
    """Immutable view of a chat log taken at the start of a pass."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    messages: tuple[Message, ...] = ()

    def __len__(self) -> int:
        return len(self.messages)


class MemoryWindowResult(BaseModel):
    """Rendered memory for the current allocation. Never persisted."""

    short_text: str = ""
    long_text: str = ""
    short_memory: str = ""  # bullet list before templating
    long_memory: str = ""

    @property
    def display_text(self) -> str:
        return f"{self.long_text}\n\n{self.short_text}"
