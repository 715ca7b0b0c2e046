"""HTTP client for the remote assistant — POST a question, stream the reply bytes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx

from src.chat.errors import TransportError
from src.config import settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class AssistantClient:
    """Streams answers from the remote assistant endpoint.

    Every failure below "obtain a byte stream" (connect, status, mid-stream
    read) surfaces as ``TransportError``. Pass *client* to inject a
    preconfigured ``httpx.AsyncClient`` (e.g. one with a ``MockTransport``);
    otherwise one is created lazily and owned by this instance.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        question_field: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url or settings.chat_url()
        self.question_field = question_field or settings.question_field
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @asynccontextmanager
    async def stream_answer(self, question: str) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open the response and yield an async iterator over its raw chunks."""
        payload = {self.question_field: question}
        headers = {"Content-Type": "application/json"}
        client = self._get_client()
        try:
            async with client.stream("POST", self.url, json=payload, headers=headers) as resp:
                if not resp.is_success:
                    msg = f"Assistant returned HTTP {resp.status_code}"
                    raise TransportError(msg)
                logger.debug("Response stream opened: status=%d", resp.status_code)
                yield _chunks(resp)
        except httpx.TimeoutException as exc:
            msg = f"Timed out talking to {self.url}"
            raise TransportError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Request to {self.url} failed: {exc}"
            raise TransportError(msg) from exc

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


async def _chunks(resp: httpx.Response) -> AsyncIterator[bytes]:
    async for chunk in resp.aiter_bytes():
        yield chunk
