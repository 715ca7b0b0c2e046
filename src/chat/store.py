"""ConversationStore — ordered, append-mostly message log observed by the UI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.chat.errors import NotFoundError, SequencingError, ValidationError
from src.chat.models import Message, MessageStatus, Role, new_message_id

if TYPE_CHECKING:
    from collections.abc import Callable

    Observer = Callable[[tuple[Message, ...]], None]

logger = logging.getLogger(__name__)


class ConversationStore:
    """Single source of truth for one conversation.

    Messages are never removed or reordered. Every mutation publishes a
    fresh immutable snapshot to all subscribed observers. Mutations are
    synchronous, so under asyncio an observer never sees a half-applied
    update.
    """

    def __init__(self, greeting: str | None = None) -> None:
        self._messages: list[Message] = []
        self._index: dict[str, int] = {}
        self._observers: list[Observer] = []
        if greeting:
            self.seed_greeting(greeting)

    # -- Read access -----------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def snapshot(self) -> tuple[Message, ...]:
        """Return the current message sequence as an immutable tuple."""
        return tuple(self._messages)

    def get(self, message_id: str) -> Message | None:
        pos = self._index.get(message_id)
        return None if pos is None else self._messages[pos]

    @property
    def streaming_message(self) -> Message | None:
        """The in-flight assistant message, if any."""
        for msg in reversed(self._messages):
            if msg.is_streaming:
                return msg
        return None

    def __len__(self) -> int:
        return len(self._messages)

    # -- Observers -------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer* for snapshots. Returns an unsubscribe callable."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Conversation observer failed")

    # -- Mutations -------------------------------------------------------------

    def _append(self, message: Message) -> Message:
        self._index[message.id] = len(self._messages)
        self._messages.append(message)
        self._notify()
        return message

    def _replace(self, message: Message) -> None:
        self._messages[self._index[message.id]] = message
        self._notify()

    def _require(self, message_id: str) -> Message:
        message = self.get(message_id)
        if message is None:
            msg = f"No message with id {message_id!r}"
            raise NotFoundError(msg)
        return message

    def seed_greeting(self, text: str) -> Message:
        """Append the initial final assistant message."""
        return self._append(Message(id=new_message_id(), role=Role.ASSISTANT, content=text))

    def append_user_message(self, text: str) -> Message:
        """Append a final user message holding the trimmed *text*.

        Raises ``ValidationError`` if *text* is blank.
        """
        question = text.strip()
        if not question:
            msg = "Question is empty"
            raise ValidationError(msg)
        return self._append(Message(id=new_message_id(), role=Role.USER, content=question))

    def append_pending_assistant_message(self) -> Message:
        """Append an empty streaming assistant placeholder.

        Raises ``SequencingError`` if another message is still streaming.
        """
        current = self.streaming_message
        if current is not None:
            msg = f"Message {current.id} is still streaming"
            raise SequencingError(msg)
        return self._append(
            Message(id=new_message_id(), role=Role.ASSISTANT, status=MessageStatus.STREAMING)
        )

    def append_fragment(self, message_id: str, fragment: str) -> None:
        """Extend the streaming message's content with *fragment*."""
        message = self._require(message_id)
        if not message.is_streaming:
            msg = f"Message {message_id} is not streaming"
            raise NotFoundError(msg)
        if not fragment:
            return
        self._replace(message.with_content(message.content + fragment))

    def finalize(self, message_id: str) -> None:
        """Mark the message final. A second call is a no-op."""
        message = self._require(message_id)
        if not message.is_streaming:
            return
        self._replace(message.finalized())

    def replace_and_finalize(self, message_id: str, text: str) -> None:
        """Overwrite content with *text* and mark final in one step.

        Used only for the error fallback. No-op once the message is final.
        """
        message = self._require(message_id)
        if not message.is_streaming:
            return
        self._replace(message.finalized(content=text))
