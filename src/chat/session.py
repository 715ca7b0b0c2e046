"""Chat session controller — the surface the UI talks to."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.chat.busy import BusyFlag
from src.chat.ingestor import ExchangeOutcome, StreamIngestor
from src.chat.store import ConversationStore
from src.chat.transport import AssistantClient
from src.config import settings

if TYPE_CHECKING:
    from collections.abc import Callable

    from src.chat.models import Message

logger = logging.getLogger(__name__)


class ChatSession:
    """One conversation with the remote assistant.

    Owns the store (seeded with the greeting), the busy flag and the
    ingestor. The UI submits through ``submit()``, observes through
    ``subscribe()``/``messages`` and reads ``busy`` to disable input.
    """

    def __init__(
        self,
        client: AssistantClient | None = None,
        *,
        greeting: str | None = None,
        max_question_length: int | None = None,
        error_message: str | None = None,
    ) -> None:
        self._client = client or AssistantClient()
        self._busy = BusyFlag()
        self.store = ConversationStore(greeting=greeting or settings.greeting)
        self.ingestor = StreamIngestor(
            self._client, busy=self._busy, error_message=error_message
        )
        self.max_question_length = max_question_length or settings.max_question_length

    @property
    def endpoint(self) -> str:
        return self._client.url

    @property
    def busy(self) -> bool:
        return self._busy.is_set

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.store.snapshot()

    def subscribe(self, observer: Callable[[tuple[Message, ...]], None]) -> Callable[[], None]:
        """Subscribe to message snapshots. Returns an unsubscribe callable."""
        return self.store.subscribe(observer)

    def can_submit(self, text: str) -> bool:
        """Whether *text* would be dispatched right now."""
        question = text.strip()
        return bool(question) and len(question) <= self.max_question_length and not self.busy

    async def submit(self, text: str) -> ExchangeOutcome:
        """Send *text* to the assistant and stream the reply into the store."""
        if self.busy:
            logger.warning("Submission ignored: an exchange is already in flight")
            return ExchangeOutcome.REJECTED
        question = text.strip()
        if len(question) > self.max_question_length:
            logger.warning(
                "Submission ignored: %d chars exceeds limit of %d",
                len(question),
                self.max_question_length,
            )
            return ExchangeOutcome.REJECTED
        return await self.ingestor.run(question, self.store)

    async def aclose(self) -> None:
        await self._client.aclose()
