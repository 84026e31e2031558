"""Chat command - streaming conversation with the studio assistant"""

import asyncio
from typing import Optional, Tuple

import click

from core.chat import ChatSession
from core.models import ChatMessage, ChatRole
from core.provider_config import BackendFactory, get_default_backend
from .display import console

EXIT_COMMANDS = {"/quit", "/exit"}


class StreamPrinter:
    """Prints only the newly streamed part of the latest model message"""

    def __init__(self):
        self._message_id: Optional[str] = None
        self._printed = 0

    def __call__(self, messages: Tuple[ChatMessage, ...]):
        last = messages[-1]
        if last.role != ChatRole.MODEL:
            return
        if last.id != self._message_id:
            if self._message_id is not None:
                console.print()
            self._message_id = last.id
            self._printed = 0
            console.print("[bold magenta]Assistant:[/bold magenta] ", end="")
        delta = last.text[self._printed:]
        if delta:
            console.print(delta, end="", markup=False, highlight=False)
            self._printed = len(last.text)

    def finish(self):
        console.print()
        self._message_id = None


async def _chat_loop(session: ChatSession, message: Optional[str]):
    printer = StreamPrinter()
    session.subscribe(printer)

    if message:
        await session.send(message)
        printer.finish()
        return

    console.print(f"[bold magenta]Assistant:[/bold magenta] {session.messages[-1].text}")
    console.print("[dim]Type /quit to leave.[/dim]")
    while True:
        line = await asyncio.to_thread(click.prompt, "You", default="", show_default=False)
        line = line.strip()
        if line in EXIT_COMMANDS:
            break
        if not line:
            continue
        await session.send(line)
        printer.finish()


@click.command()
@click.option("--message", "-m", help="Send one message and exit")
@click.option("--mock", "use_mock", is_flag=True, help="Use the mock backend (no API calls)")
def chat_cmd(message: Optional[str], use_mock: bool):
    """
    Talk to the studio assistant about scripts and video generation.

    Examples:

        dimension-studio chat
        dimension-studio chat -m "How do I keep a character consistent across shots?"
    """
    if use_mock:
        backend = BackendFactory.create_mock()
    else:
        backend = get_default_backend()

    try:
        asyncio.run(_chat_loop(ChatSession(backend), message))
    except (KeyboardInterrupt, EOFError, click.Abort):
        console.print()
