"""Tests for the StreamIngestor exchange lifecycle."""

import json
from unittest.mock import patch

import httpx
import pytest

from src.chat.busy import BusyFlag
from src.chat.ingestor import ExchangeOutcome, StreamIngestor
from src.chat.models import MessageStatus, Role
from src.chat.store import ConversationStore


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore(greeting="Hola")


def _ingestor(client, error_message, busy=None) -> StreamIngestor:
    return StreamIngestor(client, busy=busy, error_message=error_message)


class TestSuccess:
    async def test_streams_reply_into_placeholder(self, store, reply_with, error_message):
        ingestor = _ingestor(reply_with(b"La matr", "ícula ".encode(), b"abre hoy."), error_message)

        outcome = await ingestor.run("¿Cuándo abre la matrícula?", store)

        assert outcome is ExchangeOutcome.COMPLETED
        greeting, user, reply = store.messages
        assert user.role is Role.USER
        assert user.content == "¿Cuándo abre la matrícula?"
        assert reply.role is Role.ASSISTANT
        assert reply.content == "La matrícula abre hoy."
        assert reply.status is MessageStatus.FINAL

    async def test_sends_trimmed_question(self, store, reply_with, error_message):
        client = reply_with(b"ok")
        await _ingestor(client, error_message).run("  hola  ", store)
        (request,) = client.requests
        assert json.loads(request.content) == {"pregunta": "hola"}
        assert store.messages[1].content == "hola"

    async def test_empty_body_completes_with_empty_content(self, store, reply_with, error_message):
        outcome = await _ingestor(reply_with(), error_message).run("hola", store)
        assert outcome is ExchangeOutcome.COMPLETED
        assert store.messages[-1].content == ""
        assert store.messages[-1].status is MessageStatus.FINAL

    async def test_multibyte_char_split_across_chunks(self, store, reply_with, error_message):
        euro = "€".encode()
        client = reply_with(b"Cuesta 50 " + euro[:1], euro[1:] + b".")
        await _ingestor(client, error_message).run("precio", store)
        assert store.messages[-1].content == "Cuesta 50 €."
        assert "�" not in store.messages[-1].content

    async def test_content_grows_monotonically(self, store, reply_with, error_message):
        observed: list[str] = []

        def watch(snapshot):
            last = snapshot[-1]
            if last.role is Role.ASSISTANT and last.is_streaming:
                observed.append(last.content)

        store.subscribe(watch)
        client = reply_with(b"a", b"bc", b"", b"def")
        await _ingestor(client, error_message).run("q", store)

        assert observed[0] == ""
        for before, after in zip(observed, observed[1:], strict=False):
            assert after.startswith(before)
        assert observed[-1] == "abcdef"


class TestFailure:
    async def test_mid_stream_failure_replaces_partial_content(
        self, store, reply_with, error_message
    ):
        client = reply_with(
            b"Primera parte, ",
            b"segunda parte",
            fail_with=httpx.ReadError("connection reset"),
        )
        applied: list[str] = []
        store.subscribe(lambda s: applied.append(s[-1].content))

        outcome = await _ingestor(client, error_message).run("q", store)

        assert outcome is ExchangeOutcome.FAILED
        assert "Primera parte, segunda parte" in applied
        reply = store.messages[-1]
        assert reply.content == error_message
        assert reply.status is MessageStatus.FINAL

    @pytest.mark.parametrize("status", [404, 500])
    async def test_error_status(self, store, reply_with, error_message, status):
        outcome = await _ingestor(reply_with(b"boom", status=status), error_message).run("q", store)
        assert outcome is ExchangeOutcome.FAILED
        assert store.messages[-1].content == error_message

    async def test_connection_refused(self, store, make_client, error_message):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        outcome = await _ingestor(make_client(handler), error_message).run("q", store)
        assert outcome is ExchangeOutcome.FAILED
        assert [m.role for m in store.messages] == [Role.ASSISTANT, Role.USER, Role.ASSISTANT]
        assert store.messages[-1].content == error_message

    async def test_invalid_utf8(self, store, reply_with, error_message, caplog):
        client = reply_with(b"ok ", b"\xff\xfe")
        outcome = await _ingestor(client, error_message).run("q", store)
        assert outcome is ExchangeOutcome.FAILED
        assert store.messages[-1].content == error_message
        assert "Exchange failed (decode)" in caplog.text

    async def test_stream_ends_mid_character(self, store, reply_with, error_message, caplog):
        client = reply_with(b"precio: ", "€".encode()[:2])
        outcome = await _ingestor(client, error_message).run("q", store)
        assert outcome is ExchangeOutcome.FAILED
        assert store.messages[-1].content == error_message
        assert "Exchange failed (decode)" in caplog.text

    async def test_transport_failure_logged_distinctly(
        self, store, reply_with, error_message, caplog
    ):
        await _ingestor(reply_with(status=502), error_message).run("q", store)
        assert "Exchange failed (transport)" in caplog.text
        assert "Exchange failed (decode)" not in caplog.text

    async def test_unexpected_error_does_not_propagate(self, store, reply_with, error_message):
        ingestor = _ingestor(reply_with(b"ok"), error_message)
        with patch.object(store, "append_fragment", side_effect=RuntimeError("bug")):
            outcome = await ingestor.run("q", store)
        assert outcome is ExchangeOutcome.FAILED
        assert store.messages[-1].content == error_message
        assert store.streaming_message is None


class TestRejection:
    @pytest.mark.parametrize("question", ["", "   ", "\n"])
    async def test_blank_question(self, store, reply_with, error_message, question):
        client = reply_with(b"unused")
        busy = BusyFlag()
        outcome = await _ingestor(client, error_message, busy).run(question, store)

        assert outcome is ExchangeOutcome.REJECTED
        assert len(store) == 1
        assert client.requests == []
        assert busy.is_set is False


class TestBusyFlag:
    async def _run_observing(self, store, client, error_message):
        busy = BusyFlag()
        readings: list[tuple[bool, MessageStatus]] = []
        store.subscribe(lambda s: readings.append((busy.is_set, s[-1].status)))
        ingestor = _ingestor(client, error_message, busy)
        outcome = await ingestor.run("q", store)
        return outcome, busy, readings

    async def test_brackets_successful_exchange(self, store, reply_with, error_message):
        outcome, busy, readings = await self._run_observing(
            store, reply_with(b"a", b"b"), error_message
        )
        assert outcome is ExchangeOutcome.COMPLETED
        assert all(flag for flag, _ in readings)
        assert readings[-1][1] is MessageStatus.FINAL
        assert busy.is_set is False

    async def test_brackets_failed_exchange(self, store, reply_with, error_message):
        client = reply_with(b"a", fail_with=httpx.ReadError("reset"))
        outcome, busy, readings = await self._run_observing(store, client, error_message)
        assert outcome is ExchangeOutcome.FAILED
        assert all(flag for flag, _ in readings)
        assert readings[-1][1] is MessageStatus.FINAL
        assert busy.is_set is False

    async def test_set_while_request_in_flight(self, store, make_client, error_message):
        busy = BusyFlag()
        seen: list[bool] = []

        def handler(request):
            seen.append(busy.is_set)
            return httpx.Response(200, content=b"ok")

        await _ingestor(make_client(handler), error_message, busy).run("q", store)
        assert seen == [True]
        assert busy.is_set is False

    async def test_cleared_after_unexpected_error(self, store, reply_with, error_message):
        busy = BusyFlag()
        ingestor = _ingestor(reply_with(b"ok"), error_message, busy)
        with patch.object(store, "append_fragment", side_effect=RuntimeError("bug")):
            await ingestor.run("q", store)
        assert busy.is_set is False


class TestSequentialExchanges:
    async def test_order_matches_submissions(self, make_client, error_message):
        store = ConversationStore(greeting="Hola")

        def handler(request):
            return httpx.Response(200, content=b"re: " + request.content)

        ingestor = _ingestor(make_client(handler), error_message)
        for question in ["uno", "dos", "tres"]:
            await ingestor.run(question, store)

        msgs = store.messages[1:]
        assert [m.role for m in msgs] == [Role.USER, Role.ASSISTANT] * 3
        assert [m.content for m in msgs[::2]] == ["uno", "dos", "tres"]
        assert all(m.status is MessageStatus.FINAL for m in msgs)
        assert all(m.content.startswith("re: ") for m in msgs[1::2])
