"""
Connection supervisor.

Owns the sessions of every enabled edition, staggers their startup, and is
the single entry point for routing outbound chat.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from .config import AppConfig
from .editions import DEFAULT_ROUTE_ORDER, Edition
from .exceptions import ConfigError, RouteError
from .protocol import TransportFactory
from .session import LifecycleState, ProtocolSession
from .transports import resolve_transport
from ..utils.logging import edition_logger


logger = logging.getLogger(__name__)


class ConnectionSupervisor:
    """
    Supervises zero, one or two protocol sessions.

    When both editions are enabled the datagram session is held back until
    the stateful session has logged in, plus a settle delay; starting both at
    once can trip anti-abuse checks on servers that link the two identities.
    """

    def __init__(self, sessions: Dict[Edition, ProtocolSession], stagger_delay: float = 0.0):
        self.sessions = dict(sessions)
        self.stagger_delay = stagger_delay
        self.startup_order: List[Edition] = [
            edition for edition in DEFAULT_ROUTE_ORDER if edition in self.sessions
        ]
        self._stagger_task: Optional[asyncio.Task] = None
        self._started = False
        self._stopped = False

    @classmethod
    def from_config(cls, config: AppConfig,
                    factories: Optional[Dict[Edition, TransportFactory]] = None) -> "ConnectionSupervisor":
        """
        Build sessions for every enabled edition.

        Args:
            config: Resolved application configuration
            factories: Transport factories overriding the configured ones

        Returns:
            ConnectionSupervisor: Supervisor owning one session per enabled edition

        Raises:
            ConfigError: If a configured transport cannot be resolved
        """
        factories = factories or {}
        sessions: Dict[Edition, ProtocolSession] = {}
        for edition in DEFAULT_ROUTE_ORDER:
            session_config = config.sessions.get(edition)
            if session_config is None:
                edition_logger(__name__, edition.tag).info("Client disabled in configuration")
                continue
            factory = factories.get(edition)
            if factory is None:
                path = config.transports.get(edition)
                if path is None:
                    raise ConfigError(f"No transport configured for the {edition.tag} edition")
                factory = resolve_transport(path, edition)
            sessions[edition] = ProtocolSession(
                session_config, config.strategies[edition], factory
            )
        return cls(sessions, stagger_delay=config.stagger_delay)

    def get(self, edition: Edition) -> Optional[ProtocolSession]:
        return self.sessions.get(edition)

    def start(self) -> None:
        """Start every session, deferring the datagram one as needed."""
        if self._started or self._stopped:
            return
        self._started = True

        if not self.sessions:
            logger.warning("No editions enabled; nothing to connect")
            return

        stateful = self.sessions.get(Edition.STATEFUL)
        datagram = self.sessions.get(Edition.DATAGRAM)

        if stateful is not None:
            stateful.start()

        if datagram is not None:
            if stateful is None:
                datagram.start()
            else:
                self._stagger_task = asyncio.ensure_future(self._start_after(stateful, datagram))

    async def _start_after(self, first: ProtocolSession, second: ProtocolSession) -> None:
        await first.wait_connected()
        second.logger.info(
            f"Waiting {self.stagger_delay:g} seconds before connecting to avoid "
            f"authentication conflicts..."
        )
        await asyncio.sleep(self.stagger_delay)
        second.start()

    async def route(self, edition: Optional[Edition], text: str) -> ProtocolSession:
        """
        Send chat text through the selected session.

        Args:
            edition: Target edition, or None to prefer stateful then datagram
            text: Chat text to send

        Returns:
            ProtocolSession: The session that carried the message

        Raises:
            RouteError: If the requested edition is disabled or none is available
            SendError: If the chosen session is not connected or the send fails
        """
        session = self.select(edition)
        await session.send_chat(text)
        return session

    def select(self, edition: Optional[Edition]) -> ProtocolSession:
        """Pick the session a message for ``edition`` would be routed to."""
        if edition is not None:
            session = self.sessions.get(edition)
            if session is None:
                raise RouteError(f"[{edition.tag}] Client is not connected or disabled")
            return session

        for candidate in DEFAULT_ROUTE_ORDER:
            session = self.sessions.get(candidate)
            if session is not None:
                return session
        raise RouteError("No clients are connected")

    async def stop_all(self) -> None:
        """Shut every session down. Idempotent."""
        if not self._stopped:
            self._stopped = True
            logger.info("Disconnecting bots...")

        task, self._stagger_task = self._stagger_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        for session in self.sessions.values():
            await session.stop()

    def status(self) -> Dict[Edition, LifecycleState]:
        return {edition: session.state for edition, session in self.sessions.items()}
