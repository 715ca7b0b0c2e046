"""Conversation message model."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageStatus(StrEnum):
    FINAL = "final"
    STREAMING = "streaming"


def new_message_id() -> str:
    """Return a fresh opaque message identifier (UUID hex)."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Message:
    """A single conversation turn.

    Instances are immutable. The store publishes updated copies, so a
    snapshot handed to an observer never changes underneath it.

    Attributes:
        id: Opaque identifier assigned by the store, never reused.
        role: ``Role.USER`` or ``Role.ASSISTANT``.
        content: Text body. Grows by append while ``status`` is streaming.
        status: ``MessageStatus.FINAL`` or ``MessageStatus.STREAMING``.
        created_at: UTC timestamp captured at creation. Display only.
    """

    id: str
    role: Role
    content: str = ""
    status: MessageStatus = MessageStatus.FINAL
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_streaming(self) -> bool:
        return self.status is MessageStatus.STREAMING

    def display_time(self) -> str:
        """Local wall-clock time of creation, e.g. ``14:03:27``."""
        return self.created_at.astimezone().strftime("%X")

    def with_content(self, content: str) -> Message:
        return replace(self, content=content)

    def finalized(self, content: str | None = None) -> Message:
        """Return a final copy, optionally with *content* replaced."""
        if content is None:
            return replace(self, status=MessageStatus.FINAL)
        return replace(self, content=content, status=MessageStatus.FINAL)
