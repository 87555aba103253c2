"""
Operator console command router.

Reads operator input line by line, parses the small command grammar and
dispatches chat to the supervisor or triggers shutdown.
"""

import asyncio
import sys
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional

from rich.console import Console
from rich.text import Text

from .editions import EDITION_ALIASES, Edition
from .exceptions import AFKBotError
from .supervisor import ConnectionSupervisor


PROMPT = "> "


class Action(Enum):
    QUIT = "quit"
    CLEAR = "clear"
    CHAT = "chat"
    USAGE = "usage"
    NOOP = "noop"


@dataclass(frozen=True)
class Command:
    """A parsed line of operator input."""
    action: Action
    edition: Optional[Edition] = None
    text: str = ""


def parse_command(line: str) -> Command:
    """
    Parse one line of operator input.

    Grammar, first match wins on the trimmed line:

    - ``/quit``: shut down
    - ``/clear``: clear the screen and reprint help
    - ``/<edition> <text>``: send ``text`` through that edition
      (``java``/``stateful`` or ``bedrock``/``datagram``)
    - any other non-empty line: send it through the default edition
    - empty line: nothing

    Args:
        line: Raw input line

    Returns:
        Command: Parsed command
    """
    trimmed = line.strip()
    if not trimmed:
        return Command(Action.NOOP)
    if trimmed == "/quit":
        return Command(Action.QUIT)
    if trimmed == "/clear":
        return Command(Action.CLEAR)

    if trimmed.startswith("/"):
        prefix, _, rest = trimmed[1:].partition(" ")
        edition = EDITION_ALIASES.get(prefix)
        if edition is not None:
            if not rest.strip():
                return Command(Action.USAGE, edition=edition)
            return Command(Action.CHAT, edition=edition, text=rest.strip())

    return Command(Action.CHAT, text=trimmed)


class CommandRouter:
    """
    Line-oriented operator console.

    Errors while sending are reported to the operator and never reach the
    remote server.
    """

    def __init__(self, supervisor: ConnectionSupervisor, console: Optional[Console] = None):
        self.supervisor = supervisor
        self.console = console or Console()
        self.quit_requested = asyncio.Event()

    def print_help(self) -> None:
        """Print the command summary."""
        help_text = Text()
        help_text.append("Chat input enabled. Type messages to send to the server.\n", style="bold")
        help_text.append('Use "/java <message>" to send a message from the Java client\n', style="green")
        help_text.append('Use "/bedrock <message>" to send a message from the Bedrock client\n', style="green")
        help_text.append('Use "/clear" to clear the console\n', style="yellow")
        help_text.append('Use "/quit" to disconnect and exit', style="red")
        self.console.print(help_text)

    async def handle_line(self, line: str) -> bool:
        """
        Handle one line of operator input.

        Args:
            line: Raw input line

        Returns:
            bool: False once the operator asked to quit, True otherwise
        """
        command = parse_command(line)

        if command.action is Action.NOOP:
            return True

        if command.action is Action.QUIT:
            await self.shutdown()
            return False

        if command.action is Action.CLEAR:
            self.console.clear()
            self.console.print("Console cleared.")
            self.print_help()
            return True

        if command.action is Action.USAGE:
            self.console.print(
                f"[yellow]Usage: /{command.edition.value} <message>[/yellow]"
            )
            return True

        await self.send(command.edition, command.text)
        return True

    async def send(self, edition: Optional[Edition], text: str) -> None:
        """Route chat text and report the outcome to the operator."""
        try:
            session = await self.supervisor.route(edition, text)
            self.console.print(f"[{session.edition.tag}] Sent: {text}", markup=False)
        except AFKBotError as e:
            self.console.print(str(e), style="red", markup=False)

    async def shutdown(self) -> None:
        """Stop all sessions and mark the console as finished."""
        await self.supervisor.stop_all()
        self.quit_requested.set()

    async def run(self, lines: AsyncIterator[str]) -> None:
        """
        Process input lines until ``/quit`` or end of input.

        End of input shuts down exactly like ``/quit``.
        """
        self.print_help()
        self._prompt()
        async for line in lines:
            if not await self.handle_line(line):
                return
            self._prompt()
        await self.shutdown()

    def _prompt(self) -> None:
        self.console.print(PROMPT, end="", markup=False)


async def stdin_lines(stream=None) -> AsyncIterator[str]:
    """
    Yield lines from standard input without blocking the event loop.

    Terminals and pipes are read through the event loop. Regular files
    (``afk-client < commands.txt``) cannot be registered with it, so they
    are read line by line in the default executor instead.
    """
    stream = stream if stream is not None else sys.stdin
    loop = asyncio.get_event_loop()
    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    try:
        await loop.connect_read_pipe(lambda: protocol, stream)
    except (ValueError, NotImplementedError):
        while True:
            line = await loop.run_in_executor(None, stream.readline)
            if not line:
                return
            yield line

    while True:
        raw = await reader.readline()
        if not raw:
            return
        yield raw.decode("utf-8", errors="replace")
