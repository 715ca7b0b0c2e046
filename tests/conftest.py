"""Shared test fixtures."""

from __future__ import annotations

import httpx
import pytest

from src.chat.transport import AssistantClient

TEST_URL = "http://assistant.test/api/chat"


def _streamed(chunks, fail_with):
    async def gen():
        for chunk in chunks:
            yield chunk
        if fail_with is not None:
            raise fail_with

    return gen()


@pytest.fixture
def error_message() -> str:
    return "Lo siento, ocurrió un error al procesar tu mensaje. Por favor, intenta de nuevo."


@pytest.fixture
def make_client():
    """Factory: AssistantClient wired to an in-process MockTransport *handler*."""

    def factory(handler) -> AssistantClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return AssistantClient(TEST_URL, question_field="pregunta", client=http)

    return factory


@pytest.fixture
def reply_with(make_client):
    """Factory: AssistantClient streaming *chunks* back for every request.

    Requests seen by the fake server are collected on ``client.requests``.
    Pass *fail_with* to raise an exception after the last chunk.
    """

    def factory(*chunks: bytes, status: int = 200, fail_with: Exception | None = None):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(status, content=_streamed(chunks, fail_with))

        client = make_client(handler)
        client.requests = requests
        return client

    return factory
