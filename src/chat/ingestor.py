"""StreamIngestor — drive one question/answer exchange to a terminal state."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from src.chat.busy import BusyFlag
from src.chat.decoder import IncrementalUtf8Decoder
from src.chat.errors import DecodeError, TransportError, ValidationError
from src.config import settings

if TYPE_CHECKING:
    from src.chat.store import ConversationStore
    from src.chat.transport import AssistantClient

logger = logging.getLogger(__name__)


class ExchangeOutcome(StrEnum):
    REJECTED = "rejected"
    COMPLETED = "completed"
    FAILED = "failed"


class StreamIngestor:
    """Runs question → streamed answer against the remote assistant.

    Assumes at most one concurrent ``run`` per conversation; the caller
    gates resubmission on ``busy``. Input length limits are the caller's
    responsibility.
    """

    def __init__(
        self,
        client: AssistantClient,
        *,
        busy: BusyFlag | None = None,
        error_message: str | None = None,
    ) -> None:
        self._client = client
        self.busy = busy if busy is not None else BusyFlag()
        self.error_message = error_message or settings.error_message

    async def run(self, question: str, store: ConversationStore) -> ExchangeOutcome:
        """Submit *question* and stream the reply into *store*.

        Every failure after the placeholder exists becomes the error-replaced
        terminal state rather than an exception. The busy flag is held until
        the terminal write has been applied; ``BusyError`` is raised only if
        another exchange already holds it.

        Returns:
            ``REJECTED`` for a blank question (nothing appended),
            ``COMPLETED`` on a clean end of stream, ``FAILED`` otherwise.
        """
        with self.busy.hold():
            try:
                user_msg = store.append_user_message(question)
            except ValidationError:
                logger.info("Rejected blank question")
                return ExchangeOutcome.REJECTED

            target = store.append_pending_assistant_message().id
            logger.info("Exchange started: target=%s, question=%s", target, user_msg.content[:80])

            try:
                chunks, chars = await self._ingest(user_msg.content, store, target)
            except TransportError as exc:
                logger.error("Exchange failed (transport): %s", exc)
            except DecodeError as exc:
                logger.error("Exchange failed (decode): %s", exc)
            except Exception:
                logger.exception("Exchange failed unexpectedly")
            else:
                store.finalize(target)
                logger.info("Exchange completed: %d chunk(s), %d char(s)", chunks, chars)
                return ExchangeOutcome.COMPLETED

            # Partial content is discarded in favour of a complete notice.
            store.replace_and_finalize(target, self.error_message)
            return ExchangeOutcome.FAILED

    async def _ingest(
        self, question: str, store: ConversationStore, target: str
    ) -> tuple[int, int]:
        decoder = IncrementalUtf8Decoder()
        chunks = chars = 0
        async with self._client.stream_answer(question) as stream:
            async for chunk in stream:
                chunks += 1
                fragment = decoder.decode(chunk)
                if fragment:
                    chars += len(fragment)
                    store.append_fragment(target, fragment)
        tail = decoder.flush()
        if tail:
            store.append_fragment(target, tail)
        return chunks, chars
