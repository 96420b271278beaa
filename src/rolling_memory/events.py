"""Host notification handling.

Maps chat lifecycle notifications to one of three actions: a full
summarization pass, a refresh of the allocation and rendering, or nothing.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger

from .config import MemoryConfig
from .engine import MemoryEngine, PassReport
from .interfaces import HostControls


class ChatEvent(str, Enum):
    CHAT_CHANGED = "chat_changed"
    MESSAGE_DELETED = "message_deleted"
    MESSAGE_SWIPED = "message_swiped"
    NEW_MESSAGE = "new_message"
    MESSAGE_EDITED = "message_edited"


class ReactorAction(str, Enum):
    FULL_PASS = "full_pass"
    REFRESH = "refresh"
    NOOP = "noop"


_DISPATCH: dict[ChatEvent, ReactorAction] = {
    ChatEvent.CHAT_CHANGED: ReactorAction.REFRESH,
    ChatEvent.MESSAGE_DELETED: ReactorAction.REFRESH,
    # a new_message notification follows a swipe and triggers summarization
    ChatEvent.MESSAGE_SWIPED: ReactorAction.REFRESH,
    ChatEvent.NEW_MESSAGE: ReactorAction.FULL_PASS,
    ChatEvent.MESSAGE_EDITED: ReactorAction.FULL_PASS,
}


def decide_action(
    event: ChatEvent | str, config: MemoryConfig, host: HostControls
) -> ReactorAction:
    """Decide how to react to a host notification.

    The streaming and no-active-chat guard is checked first: while the host
    streams, every event is dropped, even with auto-summarize disabled.

    Args:
        event: Notification name
        config: Current memory configuration
        host: Host status

    Returns:
        Action to take; unknown events resolve to a refresh
    """
    if host.is_streaming() or not host.has_active_chat():
        return ReactorAction.NOOP

    if not config.auto_summarize:
        return ReactorAction.REFRESH

    try:
        event = ChatEvent(event)
    except ValueError:
        return ReactorAction.REFRESH
    return _DISPATCH[event]


class EventReactor:
    """Dispatches host notifications to the memory engine."""

    def __init__(self, engine: MemoryEngine):
        self.engine = engine

    async def handle(self, event: ChatEvent | str) -> ReactorAction:
        """React to a host notification.

        Chat switches refresh immediately after discarding any pending
        refresh of the previous chat; other refresh-only events are
        debounced.
        """
        action = decide_action(event, self.engine.config, self.engine.host)
        logger.debug(f"Chat event {event!r} -> {action.value}")

        if action == ReactorAction.NOOP:
            return action

        if action == ReactorAction.FULL_PASS:
            await self.engine.summarize_chat(replace=False)
        elif event == ChatEvent.CHAT_CHANGED:
            self.engine.discard_pending_refresh()
            self.engine.refresh()
        else:
            self.engine.refresh_debounced()
        return action

    async def rerun(self) -> PassReport:
        """User-initiated re-run: regenerate every summary, bypassing the cache."""
        return await self.engine.summarize_chat(replace=True)
