"""
Protocol transport boundary.

The bytes of either edition's wire protocol are handled by external protocol
libraries. A Transport adapts one such library to the small surface a
session needs: connect, send chat, write a raw message, close, and a queue
of lifecycle events delivered in arrival order.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .config import SessionConfig


class EventKind(Enum):
    LOGIN = "login"
    DISCONNECT = "disconnect"
    ERROR = "error"
    CHAT = "chat"


@dataclass
class TransportEvent:
    """A lifecycle or chat event reported by a transport."""
    kind: EventKind
    reason: Optional[Any] = None
    error: Optional[BaseException] = None
    sender: Optional[str] = None
    text: Optional[str] = None

    @classmethod
    def login(cls) -> "TransportEvent":
        return cls(EventKind.LOGIN)

    @classmethod
    def disconnect(cls, reason: Any = None) -> "TransportEvent":
        return cls(EventKind.DISCONNECT, reason=reason)

    @classmethod
    def failure(cls, error: BaseException) -> "TransportEvent":
        return cls(EventKind.ERROR, error=error)

    @classmethod
    def chat(cls, sender: Optional[str], text: str) -> "TransportEvent":
        return cls(EventKind.CHAT, sender=sender, text=text)


class Transport(ABC):
    """
    One connection attempt to one edition's server.

    A Transport is single-use: a session builds a fresh one for every
    connection attempt and closes it when the attempt ends.
    """

    def __init__(self, config: SessionConfig):
        self.config = config
        self._events: "asyncio.Queue[TransportEvent]" = asyncio.Queue()

    def emit(self, event: TransportEvent) -> None:
        """Queue an event for the owning session."""
        self._events.put_nowait(event)

    async def next_event(self) -> TransportEvent:
        """Wait for the next event in arrival order."""
        return await self._events.get()

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the connection and start the handshake.

        Success of the handshake is reported later as a LOGIN event; failures
        may be raised here or reported as ERROR / DISCONNECT events.
        """

    @abstractmethod
    async def send_chat(self, text: str) -> None:
        """Send a line of chat text as the bot's identity."""

    async def write(self, name: str, params: Dict[str, Any]) -> None:
        """Write an arbitrary protocol message."""
        raise NotImplementedError(f"{type(self).__name__} does not support raw writes")

    @abstractmethod
    async def close(self) -> None:
        """Disconnect / quit. Must be safe to call more than once."""


TransportFactory = Callable[[SessionConfig], Transport]


def datagram_chat_message(config: SessionConfig, text: str) -> Dict[str, Any]:
    """Parameters of a datagram-edition ``text`` message carrying chat."""
    return {
        "type": "chat",
        "needs_translation": False,
        "source_name": config.username,
        "xuid": "",
        "platform_chat_id": "",
        "parameters": [],
        "message": text,
    }
