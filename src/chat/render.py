"""Terminal transcript renderer — a read-only observer of store snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.text import Text

from src.chat.models import Role

if TYPE_CHECKING:
    from src.chat.models import Message

ROLE_LABELS = {Role.USER: "Tú", Role.ASSISTANT: "Asistente"}
ROLE_STYLES = {Role.USER: "bold cyan", Role.ASSISTANT: "bold green"}


class TranscriptRenderer:
    """Prints the conversation as it grows.

    Finished messages are printed once. For the streaming placeholder only
    the newly appended suffix is written, so the reply appears as it
    arrives. If the placeholder is replaced (error fallback) the
    replacement is printed on a fresh line.
    """

    def __init__(self, console: Console | None = None, *, echo_user: bool = False) -> None:
        self.console = console or Console(highlight=False)
        self.echo_user = echo_user
        self._cursor = 0
        self._open_id: str | None = None
        self._open_text = ""

    def __call__(self, snapshot: tuple[Message, ...]) -> None:
        while self._cursor < len(snapshot):
            msg = snapshot[self._cursor]
            if msg.id != self._open_id:
                if msg.role is Role.USER and not self.echo_user:
                    self._cursor += 1
                    continue
                self._header(msg)
                self._open_id, self._open_text = msg.id, ""

            if msg.content.startswith(self._open_text):
                self._write(msg.content[len(self._open_text) :])
            else:
                self.console.print()
                self._write(msg.content)
            self._open_text = msg.content

            if msg.is_streaming:
                return
            self.console.print()
            self._cursor += 1
            self._open_id, self._open_text = None, ""

    def _header(self, msg: Message) -> None:
        label = Text(f"{ROLE_LABELS[msg.role]} ", style=ROLE_STYLES[msg.role])
        label.append(f"[{msg.display_time()}]", style="dim")
        self.console.print(label)

    def _write(self, text: str) -> None:
        if text:
            self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)
