"""Exception types raised by the conversation core."""


class ChatError(Exception):
    """Base class for conversation errors."""


class ValidationError(ChatError):
    """Raised when a question is empty or whitespace-only."""


class TransportError(ChatError):
    """Raised when the request fails, the stream can't be opened, or it breaks mid-read."""


class DecodeError(ChatError):
    """Raised when response bytes are not valid UTF-8."""


class NotFoundError(ChatError):
    """Raised when a fragment targets a missing or non-streaming message.

    Indicates a sequencing bug, never a user-facing condition.
    """


class SequencingError(ChatError):
    """Raised when a second placeholder is requested while one is still streaming."""


class BusyError(ChatError):
    """Raised when the busy flag is acquired while an exchange is already in flight."""
