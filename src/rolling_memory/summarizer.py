"""Per-message summarizer.

Builds the summarization prompt, calls the generation backend and records
the outcome on the message's memory state. Failures are contained at the
message level so that a pass over the chat can continue.
"""

from __future__ import annotations

from loguru import logger

from .config import MemoryConfig
from .exceptions import GenerationAbortedError
from .exclusion import is_eligible
from .interfaces import GenerationService, TokenCounterService
from .models import Message, SummaryOutcome
from .summary_cache import GENERATION_FAILED, SummaryCache


class Summarizer:
    """Generates and caches one summary per message."""

    def __init__(
        self,
        generator: GenerationService,
        token_counter: TokenCounterService,
        cache: SummaryCache | None = None,
    ):
        """Initialize summarizer.

        Args:
            generator: Backend used for the summarization calls
            token_counter: Tokenizer for prompt size checks and eligibility
            cache: Summary cache policy (created if None)
        """
        self._generator = generator
        self._token_counter = token_counter
        self.cache = cache or SummaryCache()

    def build_prompt(self, message: Message, config: MemoryConfig) -> str:
        """Combine the instruction prompt with the message text."""
        text = message.text
        if config.include_names:
            text = f"[{message.name}]:\n{text}"
        return f"{config.prompt}\n\nText to Summarize:\n{text}"

    async def summarize_text(self, prompt: str, config: MemoryConfig) -> str:
        """Send a prompt to the backend and return the raw response.

        An oversized prompt is logged but still attempted.
        """
        token_size = self._token_counter.count(prompt)
        context_size = self._token_counter.context_size()
        logger.debug(f"Summarizing text with {token_size} tokens")
        if token_size > context_size:
            logger.error(
                f"Summary prompt of {token_size} tokens exceeds "
                f"context size {context_size}"
            )

        if config.include_world_info:
            return await self._generator.generate_quiet(
                prompt, config.summary_maximum_length
            )
        return await self._generator.generate_raw(
            prompt, config.summary_maximum_length
        )

    async def ensure_summarized(
        self,
        message: Message,
        config: MemoryConfig,
        force_replace: bool = False,
    ) -> SummaryOutcome:
        """Make sure a message carries an up-to-date summary.

        Args:
            message: Message whose memory state is updated in place
            config: Current memory configuration
            force_replace: Regenerate even when the cached summary is fresh

        Returns:
            What happened to the message

        Raises:
            GenerationAbortedError: If the backend aborts on bad configuration
        """
        if not is_eligible(message, config, self._token_counter):
            return SummaryOutcome.SKIPPED

        if self.cache.lookup(message, force_replace) is not None:
            logger.debug(
                f"Message {message.index} already has a summary and hasn't "
                f"changed since, skipping summarization"
            )
            return SummaryOutcome.CACHE_HIT

        logger.debug(f"Summarizing message {message.index}")
        prompt = self.build_prompt(message, config)
        try:
            summary = await self.summarize_text(prompt, config)
        except GenerationAbortedError:
            raise
        except Exception as e:
            logger.error(f"Generation backend error for message {message.index}: {e}")
            summary = ""

        summary = (summary or "").strip()
        if not summary:
            logger.error(
                f"Failed to summarize message {message.index} - generation failed"
            )
            self.cache.record_failure(message.memory, GENERATION_FAILED)
            return SummaryOutcome.FAILED

        self.cache.store(message.memory, message.text, summary)
        logger.debug(f"Message {message.index} summarized: {summary}")
        return SummaryOutcome.SUMMARIZED
