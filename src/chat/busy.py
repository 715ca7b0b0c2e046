"""Session-level single-flight flag."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

from src.chat.errors import BusyError

if TYPE_CHECKING:
    from collections.abc import Iterator


class BusyFlag:
    """True while an exchange is in flight.

    Read by the UI to disable resubmission, written only through ``hold()``.
    """

    def __init__(self) -> None:
        self._set = False

    @property
    def is_set(self) -> bool:
        return self._set

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Set the flag for the duration of the block, clearing it on every exit."""
        if self._set:
            msg = "An exchange is already in flight"
            raise BusyError(msg)
        self._set = True
        try:
            yield
        finally:
            self._set = False
