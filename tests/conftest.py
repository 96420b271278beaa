"""
Rolling Memory Test Fixtures
Shared fixtures and fakes for the host interfaces.
"""
import asyncio

import pytest
from unittest.mock import AsyncMock

from rolling_memory.config import MemoryConfig
from rolling_memory.engine import MemoryEngine
from rolling_memory.models import MemoryState, Message, SenderKind
from rolling_memory.store import (
    InMemoryConversationStore,
    InMemoryPromptInjector,
    SimpleHost,
)
from rolling_memory.summary_cache import content_hash


class WordTokenCounter:
    """Deterministic tokenizer: one token per whitespace-separated word."""

    def __init__(self, context_size: int = 1000):
        self._context_size = context_size

    def count(self, text: str) -> int:
        return len(text.split())

    def context_size(self) -> int:
        return self._context_size


class TrackingGenerator:
    """Generation backend that records calls and concurrent in-flight calls."""

    def __init__(self, response: str = "It happened."):
        self.response = response
        self.prompts: list[str] = []
        self.quiet_prompts: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call = None  # optional hook run while a call is in flight

    async def _generate(self, prompt: str) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.on_call:
                self.on_call(prompt)
            return self.response
        finally:
            self.in_flight -= 1

    async def generate_raw(self, prompt: str, max_length: int) -> str:
        self.prompts.append(prompt)
        return await self._generate(prompt)

    async def generate_quiet(self, prompt: str, max_length: int) -> str:
        self.quiet_prompts.append(prompt)
        return await self._generate(prompt)


def words(count: int, word: str = "word") -> str:
    """Text of exactly ``count`` words."""
    return " ".join([word] * count)


@pytest.fixture
def token_counter():
    """Word counter with a 1000-token context."""
    return WordTokenCounter(context_size=1000)


@pytest.fixture
def config():
    """Default memory configuration."""
    return MemoryConfig()


@pytest.fixture
def mock_generator():
    """Mock generation backend returning a fixed summary."""
    mock = AsyncMock()
    mock.generate_raw.return_value = "The hero entered the cave."
    mock.generate_quiet.return_value = "The hero entered the cave quietly."
    return mock


@pytest.fixture
def tracking_generator():
    return TrackingGenerator()


@pytest.fixture
def make_message():
    """Factory for messages with an optional fresh summary."""

    def _make(
        index: int,
        text: str | None = None,
        summary: str | None = None,
        remembered: bool = False,
        sender_kind: SenderKind = SenderKind.CHARACTER,
        name: str = "Alice",
        stale: bool = False,
    ) -> Message:
        text = text if text is not None else words(12, f"m{index}")
        memory = MemoryState(remembered=remembered)
        if summary is not None:
            memory.summary = summary
            memory.summary_hash = content_hash("stale" if stale else text)
        return Message(
            index=index,
            text=text,
            sender_kind=sender_kind,
            name=name,
            memory=memory,
        )

    return _make


@pytest.fixture
def store():
    """Chat store with three eligible character messages."""
    s = InMemoryConversationStore(chat_id="chat-1")
    for i in range(3):
        s.append(words(12, f"m{i}"), name="Alice")
    return s


@pytest.fixture
def host():
    return SimpleHost()


@pytest.fixture
def injector():
    return InMemoryPromptInjector()


@pytest.fixture
def engine(store, token_counter, tracking_generator, injector, host):
    """MemoryEngine over the in-memory store with a tracking backend."""
    return MemoryEngine(
        store=store,
        token_counter=token_counter,
        generator=tracking_generator,
        config=MemoryConfig(refresh_debounce_seconds=0.01),
        injector=injector,
        host=host,
    )
