"""In-memory reference implementations of the host interfaces.

``InMemoryConversationStore`` models a host chat log whose messages carry a
free-form ``extra`` attachment bag; the engine keeps its memory state under
``MEMORY_KEY`` in that bag.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from .config import InjectionPosition, InjectionRole
from .exceptions import MessageNotFoundError
from .models import ChatSnapshot, MemoryState, Message, SenderKind

MEMORY_KEY = "rolling_memory"


@dataclass
class StoredMessage:
    """A message as the host stores it."""

    text: str
    sender_kind: SenderKind = SenderKind.CHARACTER
    name: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


class InMemoryConversationStore:
    """Chat log holding one active chat at a time."""

    def __init__(
        self,
        chat_id: str | None = "default",
        messages: list[StoredMessage] | None = None,
    ):
        self._chat_id = chat_id
        self._messages: list[StoredMessage] = list(messages or [])

    @property
    def chat_id(self) -> str | None:
        return self._chat_id

    @property
    def messages(self) -> list[StoredMessage]:
        return self._messages

    def __len__(self) -> int:
        return len(self._messages)

    def _get(self, index: int) -> StoredMessage:
        if index < 0 or index >= len(self._messages):
            raise MessageNotFoundError(index, len(self._messages))
        return self._messages[index]

    # Memory attachment access

    def read_memory(self, index: int) -> MemoryState:
        return MemoryState.from_attachment(self._get(index).extra.get(MEMORY_KEY))

    def write_memory(self, index: int, state: MemoryState) -> None:
        self._get(index).extra[MEMORY_KEY] = state.to_attachment()

    def snapshot(self) -> ChatSnapshot:
        """Copy the active log with validated memory states."""
        return ChatSnapshot(
            chat_id=self._chat_id or "",
            messages=tuple(
                Message(
                    index=i,
                    text=stored.text,
                    sender_kind=stored.sender_kind,
                    name=stored.name,
                    memory=MemoryState.from_attachment(stored.extra.get(MEMORY_KEY)),
                )
                for i, stored in enumerate(self._messages)
            ),
        )

    def commit_memory(
        self,
        chat_id: str,
        index: int,
        text: str,
        state: MemoryState,
        fields: set[str] | None = None,
    ) -> bool:
        """Write back a memory state computed from a snapshot.

        Args:
            chat_id: Chat the snapshot was taken from
            index: Message index in that snapshot
            text: Message text in that snapshot
            state: Memory state to write
            fields: Fields to overwrite (all when None)

        Returns:
            False if the chat was switched or the message changed meanwhile
        """
        if chat_id != self._chat_id:
            logger.debug(
                f"Discarding memory update for message {index}: "
                f"chat {chat_id!r} is no longer active"
            )
            return False
        if index >= len(self._messages) or self._messages[index].text != text:
            logger.debug(
                f"Discarding memory update for message {index}: "
                f"message changed during the pass"
            )
            return False
        if fields is not None:
            state = self.read_memory(index).model_copy(
                update={name: getattr(state, name) for name in fields}
            )
        self.write_memory(index, state)
        return True

    # Host-side mutations

    def append(
        self,
        text: str,
        sender_kind: SenderKind = SenderKind.CHARACTER,
        name: str = "",
    ) -> int:
        self._messages.append(StoredMessage(text=text, sender_kind=sender_kind, name=name))
        return len(self._messages) - 1

    def edit(self, index: int, text: str) -> None:
        self._get(index).text = text

    def delete(self, index: int) -> None:
        self._get(index)
        del self._messages[index]

    def swipe(self, text: str) -> None:
        """Replace the newest message with a regenerated alternative."""
        if not self._messages:
            raise MessageNotFoundError(0, 0)
        last = self._messages[-1]
        self._messages[-1] = StoredMessage(
            text=text, sender_kind=last.sender_kind, name=last.name
        )

    def switch_chat(
        self, chat_id: str | None, messages: list[StoredMessage] | None = None
    ) -> None:
        self._chat_id = chat_id
        self._messages = list(messages or [])


@dataclass
class Injection:
    text: str
    position: InjectionPosition
    depth: int
    role: InjectionRole
    scan: bool


class InMemoryPromptInjector:
    """Records injection slots keyed by id, overwriting on every set."""

    def __init__(self) -> None:
        self.slots: dict[str, Injection] = {}

    def set_injection(
        self,
        key: str,
        text: str,
        position: InjectionPosition,
        depth: int,
        role: InjectionRole,
        scan: bool,
    ) -> None:
        self.slots[key] = Injection(
            text=text, position=position, depth=depth, role=role, scan=scan
        )


@dataclass
class SimpleHost:
    """Host status flags with input blocking."""

    streaming: bool = False
    active_chat: bool = True
    input_blocked: bool = False

    def is_streaming(self) -> bool:
        return self.streaming

    def has_active_chat(self) -> bool:
        return self.active_chat

    def deactivate_input(self) -> None:
        self.input_blocked = True

    def activate_input(self) -> None:
        self.input_blocked = False
