"""Terminal chat entry point."""

import asyncio
import logging

from src.chat.render import TranscriptRenderer
from src.chat.session import ChatSession
from src.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)

PROMPT = "> "
EXIT_COMMANDS = {"/exit", "/quit"}


async def chat_loop(session: ChatSession, read_line=input) -> None:
    """Read questions until EOF or /exit, streaming each reply."""
    renderer = TranscriptRenderer()
    session.subscribe(renderer)
    renderer(session.messages)

    while True:
        try:
            line = await asyncio.to_thread(read_line, PROMPT)
        except EOFError:
            break
        if line.strip() in EXIT_COMMANDS:
            break
        if len(line.strip()) > session.max_question_length:
            renderer.console.print(
                f"[yellow]Máximo {session.max_question_length} caracteres "
                f"({len(line.strip())}/{session.max_question_length}).[/yellow]"
            )
            continue
        await session.submit(line)


async def run() -> None:
    session = ChatSession()
    logger.info("Connecting to %s", session.endpoint)
    try:
        await chat_loop(session)
    finally:
        await session.aclose()


def main() -> None:
    """Start an interactive chat in the terminal."""
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
