"""Eligibility rules deciding which messages take part in memory."""

from __future__ import annotations

from .config import MemoryConfig
from .interfaces import TokenCounterService
from .models import Message


def is_eligible(
    message: Message, config: MemoryConfig, token_counter: TokenCounterService
) -> bool:
    """Check whether a message may be summarized and allocated.

    Evaluated fresh on every call because the config may have changed since
    the last one.

    Args:
        message: Message to check
        config: Current memory configuration
        token_counter: Tokenizer used for the length threshold

    Returns:
        True if the message is eligible
    """
    # Remembered messages bypass every other rule
    if message.memory.remembered:
        return True

    if message.is_system:
        return False

    if message.is_user and not config.include_user_messages:
        return False

    if token_counter.count(message.text) < config.message_length_threshold:
        return False

    return True
