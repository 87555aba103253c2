"""
Shared test doubles for AFK client tests.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from src.afkbot.config import SessionConfig
from src.afkbot.editions import Edition, EditionStrategy
from src.afkbot.protocol import Transport, TransportEvent


class MockTransport(Transport):
    """Scriptable transport that records everything the session does."""

    def __init__(self, config: SessionConfig, connect_error: Optional[BaseException] = None,
                 auto_login: bool = True, write_error: Optional[BaseException] = None):
        super().__init__(config)
        self.connect_error = connect_error
        self.auto_login = auto_login
        self.write_error = write_error
        self.sent: List[str] = []
        self.writes: List[Tuple[str, Dict[str, Any]]] = []
        self.connect_calls = 0
        self.closed = False

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        if self.auto_login:
            self.emit(TransportEvent.login())

    async def send_chat(self, text: str) -> None:
        self.sent.append(text)

    async def write(self, name: str, params: Dict[str, Any]) -> None:
        self.writes.append((name, params))
        if self.write_error is not None:
            raise self.write_error

    async def close(self) -> None:
        self.closed = True


class MockTransportFactory:
    """
    Builds MockTransports for a session.

    ``connect_errors`` is consumed one entry per attempt; once empty every
    attempt connects (and logs in when ``auto_login`` is set). While
    ``build_error`` is set the factory itself raises instead of building.
    """

    def __init__(self, auto_login: bool = True):
        self.auto_login = auto_login
        self.connect_errors: List[Optional[BaseException]] = []
        self.write_error: Optional[BaseException] = None
        self.build_error: Optional[BaseException] = None
        self.transports: List[MockTransport] = []
        self.configs: List[SessionConfig] = []

    def __call__(self, config: SessionConfig) -> MockTransport:
        if self.build_error is not None:
            raise self.build_error
        error = self.connect_errors.pop(0) if self.connect_errors else None
        transport = MockTransport(
            config, connect_error=error, auto_login=self.auto_login,
            write_error=self.write_error,
        )
        self.transports.append(transport)
        self.configs.append(config)
        return transport

    @property
    def latest(self) -> MockTransport:
        return self.transports[-1]


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the event loop until it holds."""
    loop = asyncio.get_event_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.001)


def make_config(edition: Edition, **overrides) -> SessionConfig:
    defaults = {
        Edition.STATEFUL: dict(host="java.example.com", port=25565, username="AFKBot",
                               protocol_version="1.21.70", auth_mode="offline"),
        Edition.DATAGRAM: dict(host="h", port=19132, username="BedrockAFKBot",
                               protocol_version="1.21.40", fallback_version="1.21.70"),
    }[edition]
    defaults.update(overrides)
    return SessionConfig(edition=edition, **defaults)


def make_strategy(edition: Edition, **overrides) -> EditionStrategy:
    defaults = {
        Edition.STATEFUL: dict(retry_delay=0.02, auto_reply=True),
        Edition.DATAGRAM: dict(retry_delay=0.04, keepalive_interval=0.01, connect_timeout=0.1),
    }[edition]
    defaults.update(overrides)
    return EditionStrategy(edition=edition, **defaults)


@pytest.fixture
def factory():
    return MockTransportFactory()

