"""Streaming conversation core — store, decoder, transport, ingestor, session."""

from src.chat.busy import BusyFlag
from src.chat.decoder import IncrementalUtf8Decoder
from src.chat.errors import (
    BusyError,
    ChatError,
    DecodeError,
    NotFoundError,
    SequencingError,
    TransportError,
    ValidationError,
)
from src.chat.ingestor import ExchangeOutcome, StreamIngestor
from src.chat.models import Message, MessageStatus, Role
from src.chat.session import ChatSession
from src.chat.store import ConversationStore
from src.chat.transport import AssistantClient

__all__ = [
    "AssistantClient",
    "BusyError",
    "BusyFlag",
    "ChatError",
    "ChatSession",
    "ConversationStore",
    "DecodeError",
    "ExchangeOutcome",
    "IncrementalUtf8Decoder",
    "Message",
    "MessageStatus",
    "NotFoundError",
    "Role",
    "SequencingError",
    "StreamIngestor",
    "TransportError",
    "ValidationError",
]
