"""
Edition definitions and per-edition session strategies.

The two supported protocol editions share one session implementation; what
differs between them (retry delay, keep-alive, handshake timeout, chat
auto-reply) is captured here as plain data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Edition(Enum):
    """Supported protocol editions."""
    STATEFUL = "java"
    DATAGRAM = "bedrock"

    @property
    def tag(self) -> str:
        """Log tag used for every line concerning this edition."""
        return self.value.upper()


# Command prefixes accepted by the operator console for each edition
EDITION_ALIASES: Dict[str, Edition] = {
    "java": Edition.STATEFUL,
    "stateful": Edition.STATEFUL,
    "bedrock": Edition.DATAGRAM,
    "datagram": Edition.DATAGRAM,
}

# Default preference when the operator omits an edition prefix
DEFAULT_ROUTE_ORDER = (Edition.STATEFUL, Edition.DATAGRAM)

STATEFUL_RETRY_DELAY = 5.0
DATAGRAM_RETRY_DELAY = 10.0
DATAGRAM_KEEPALIVE_INTERVAL = 30.0
DATAGRAM_CONNECT_TIMEOUT = 30.0
STAGGER_DELAY = 10.0

PING_TRIGGER = "!ping"
PING_REPLY = "Pong! I am a Java AFK bot."

KEEPALIVE_MESSAGE = "tick_sync"


@dataclass(frozen=True)
class EditionStrategy:
    """
    Behavioural knobs that distinguish one edition's session from another.

    Attributes:
        edition: Edition this strategy applies to
        retry_delay: Flat delay in seconds before every reconnect attempt
        keepalive_interval: Seconds between keep-alive writes, None to disable
        connect_timeout: Bound on connect plus handshake, None for no bound
        auto_reply: Whether the session answers the ping trigger in chat
    """
    edition: Edition
    retry_delay: float
    keepalive_interval: Optional[float] = None
    connect_timeout: Optional[float] = None
    auto_reply: bool = False

    @property
    def tag(self) -> str:
        return self.edition.tag


def stateful_strategy(retry_delay: float = STATEFUL_RETRY_DELAY) -> EditionStrategy:
    """Strategy for the authenticated, connection-oriented edition."""
    return EditionStrategy(
        edition=Edition.STATEFUL,
        retry_delay=retry_delay,
        auto_reply=True,
    )


def datagram_strategy(
    retry_delay: float = DATAGRAM_RETRY_DELAY,
    keepalive_interval: float = DATAGRAM_KEEPALIVE_INTERVAL,
    connect_timeout: float = DATAGRAM_CONNECT_TIMEOUT,
) -> EditionStrategy:
    """Strategy for the lightweight datagram edition."""
    return EditionStrategy(
        edition=Edition.DATAGRAM,
        retry_delay=retry_delay,
        keepalive_interval=keepalive_interval,
        connect_timeout=connect_timeout,
    )
