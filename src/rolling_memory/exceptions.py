"""Rolling memory exception classes."""


class RollingMemoryError(Exception):
    """Base exception for the rolling memory system."""

    pass


class GenerationAbortedError(RollingMemoryError):
    """Generation backend refused to run (malformed configuration).

    Unlike an empty response, this aborts the enclosing summarization pass.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Generation aborted: {reason}")


class MessageNotFoundError(RollingMemoryError):
    """A command referenced a message index outside the current chat."""

    def __init__(self, index: int, chat_length: int):
        self.index = index
        self.chat_length = chat_length
        super().__init__(
            f"Message {index} not found (chat has {chat_length} messages)"
        )
