"""Incremental UTF-8 decoder with an explicit carry-over buffer.

Chunk boundaries from the network don't respect character boundaries, so
a multi-byte character may arrive split across two reads. The trailing
bytes of an incomplete sequence are held back until the next chunk
completes them.
"""

from __future__ import annotations

import logging

from src.chat.errors import DecodeError

logger = logging.getLogger(__name__)


def _sequence_length(lead: int) -> int:
    """Bytes in the UTF-8 sequence started by *lead* (1 for ASCII/invalid)."""
    if lead & 0xE0 == 0xC0:
        return 2
    if lead & 0xF0 == 0xE0:
        return 3
    if lead & 0xF8 == 0xF0:
        return 4
    return 1


def _incomplete_tail(data: bytes) -> int:
    """Number of trailing bytes that form an unfinished sequence."""
    for back in range(1, min(3, len(data)) + 1):
        byte = data[-back]
        if byte & 0xC0 == 0x80:
            continue
        return back if _sequence_length(byte) > back else 0
    return 0


class IncrementalUtf8Decoder:
    """Decode a byte stream chunk by chunk."""

    def __init__(self) -> None:
        self._carry = b""

    @property
    def pending(self) -> int:
        """Bytes held back awaiting the rest of their character."""
        return len(self._carry)

    def decode(self, chunk: bytes) -> str:
        """Decode *chunk*, holding back any incomplete trailing sequence.

        Raises ``DecodeError`` on bytes that can never form valid UTF-8.
        """
        data = self._carry + chunk
        tail = _incomplete_tail(data)
        complete, self._carry = (data[:-tail], data[-tail:]) if tail else (data, b"")
        try:
            return complete.decode("utf-8")
        except UnicodeDecodeError as exc:
            self._carry = b""
            msg = f"Invalid UTF-8 in response stream: {exc.reason} at byte {exc.start}"
            raise DecodeError(msg) from exc

    def flush(self) -> str:
        """Finish the stream. Raises ``DecodeError`` if bytes are still carried."""
        if self._carry:
            leftover = self._carry
            self._carry = b""
            msg = f"Response stream ended mid-character ({len(leftover)} dangling byte(s))"
            raise DecodeError(msg)
        return ""
