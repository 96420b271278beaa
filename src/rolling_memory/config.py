"""Rolling memory configuration models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

SHORT_MEMORY_MACRO = "short_memory"
LONG_MEMORY_MACRO = "long_memory"

DEFAULT_PROMPT = """\
Summarize the given fictional narrative in a single, very short and concise statement of fact.
State only events that will need to be remembered in the future.
Include names when possible.
Response must be in the past tense.
Maintain the same point of view as the text (i.e. if the text uses "you", use "your" in the response). \
If an observer is unspecified, assume it is "you".
Your response must ONLY contain the summary. If there is nothing worth summarizing, do not respond."""

DEFAULT_SHORT_TEMPLATE = (
    "[Following is a list of recent events]:\n{{" + SHORT_MEMORY_MACRO + "}}"
)
DEFAULT_LONG_TEMPLATE = (
    "[Following is a list of events that occurred in the past]:\n{{"
    + LONG_MEMORY_MACRO
    + "}}"
)


class InjectionPosition(str, Enum):
    """Where the host places an injected memory block."""

    IN_PROMPT = "in_prompt"
    IN_CHAT = "in_chat"
    BEFORE_PROMPT = "before_prompt"
    NONE = "none"


class InjectionRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TierConfig(BaseModel):
    """Budget and injection settings for one memory tier."""

    template: str
    context_limit: float = Field(0.1, ge=0.0, le=1.0)  # fraction of context size
    position: InjectionPosition = InjectionPosition.IN_PROMPT
    depth: int = Field(2, ge=0)
    role: InjectionRole = InjectionRole.SYSTEM
    scan: bool = False


class MemoryConfig(BaseModel):
    """Top-level rolling memory configuration."""

    auto_summarize: bool = True
    include_world_info: bool = False  # use quiet generation with world context
    prompt: str = DEFAULT_PROMPT
    block_chat: bool = False  # block host input while a pass runs
    message_length_threshold: int = Field(10, ge=0)  # min tokens to summarize
    summary_maximum_length: int = Field(20, ge=1)  # max summary tokens
    include_user_messages: bool = False
    include_names: bool = False  # prefix sender name in the prompt
    debug_mode: bool = False
    refresh_debounce_seconds: float = Field(1.0, ge=0.0)

    short_term: TierConfig = Field(
        default_factory=lambda: TierConfig(template=DEFAULT_SHORT_TEMPLATE)
    )
    long_term: TierConfig = Field(
        default_factory=lambda: TierConfig(template=DEFAULT_LONG_TEMPLATE)
    )

    def with_default_prompt(self) -> "MemoryConfig":
        """Return a copy with the instruction prompt restored to its default."""
        return self.model_copy(update={"prompt": DEFAULT_PROMPT})
