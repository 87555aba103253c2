"""
Transport implementations and factory resolution.

Real protocol adapters live outside this package and are referenced by a
``"package.module:ClassName"`` import path. The built-in loopback transport
needs no server and is used for offline dry runs.
"""

import importlib
import logging
from typing import Any, Dict, List, Tuple

from .config import SessionConfig
from .editions import Edition
from .exceptions import ConfigError
from .protocol import Transport, TransportEvent, TransportFactory, datagram_chat_message


logger = logging.getLogger(__name__)


class LoopbackTransport(Transport):
    """
    Transport that logs in immediately and echoes chat back.

    Everything written to it is kept in ``sent`` and ``writes`` so a dry run
    can be inspected afterwards.
    """

    ECHO_SENDER = "Server"

    def __init__(self, config: SessionConfig):
        super().__init__(config)
        self.sent: List[str] = []
        self.writes: List[Tuple[str, Dict[str, Any]]] = []
        self.connected = False

    async def connect(self) -> None:
        logger.debug(f"Loopback connect for {self.config.username}@{self.config.address}")
        self.connected = True
        self.emit(TransportEvent.login())

    async def send_chat(self, text: str) -> None:
        self.sent.append(text)
        if self.config.edition is Edition.DATAGRAM:
            await self.write("text", datagram_chat_message(self.config, text))
        self.emit(TransportEvent.chat(self.ECHO_SENDER, text))

    async def write(self, name: str, params: Dict[str, Any]) -> None:
        self.writes.append((name, params))

    async def close(self) -> None:
        if self.connected:
            self.connected = False
            self.emit(TransportEvent.disconnect("Client disconnected"))


BUILTIN_TRANSPORTS: Dict[str, TransportFactory] = {
    "loopback": LoopbackTransport,
}


def resolve_transport(path: str, edition: Edition) -> TransportFactory:
    """
    Resolve a transport factory from its configured name.

    Args:
        path: Built-in name or ``"package.module:ClassName"`` import path
        edition: Edition the transport is for, used in error messages

    Returns:
        TransportFactory: Callable building a Transport from a SessionConfig

    Raises:
        ConfigError: If the path cannot be imported or is not callable
    """
    if path in BUILTIN_TRANSPORTS:
        return BUILTIN_TRANSPORTS[path]

    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(
            f"{edition.tag} transport must be 'loopback' or 'package.module:ClassName', got {path!r}"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import {edition.tag} transport module {module_name!r}: {e}")

    factory = getattr(module, attr, None)
    if factory is None or not callable(factory):
        raise ConfigError(f"{edition.tag} transport {path!r} is not a callable factory")
    return factory
