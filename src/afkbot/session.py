"""
Protocol session lifecycle.

A ProtocolSession keeps one edition connected indefinitely: it builds a fresh
transport for every attempt, waits for the login signal, relays chat while
connected, and retries after a flat delay whenever the connection fails or
ends. The session object lives for the whole run; transports do not.
"""

import asyncio
import json
import time
from collections import deque
from dataclasses import replace
from enum import Enum
from typing import Deque, Optional, Tuple

from .config import SessionConfig
from .diagnostics import FailureKind, classify_failure, failure_hints, parse_kick_reason
from .editions import KEEPALIVE_MESSAGE, PING_REPLY, PING_TRIGGER, Edition, EditionStrategy
from .exceptions import (
    AFKBotError, NotConnectedError, SendError, ServerInitiatedDisconnect, TransportTimeout,
)
from .protocol import EventKind, Transport, TransportEvent, TransportFactory
from ..utils.logging import edition_logger


HISTORY_SIZE = 100


class LifecycleState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    BACKOFF = "backoff"
    SHUTDOWN = "shutdown"


class ProtocolSession:
    """
    Long-lived connection maintainer for one edition.

    State machine::

        IDLE -> CONNECTING -> CONNECTED -> DISCONNECTED -> BACKOFF -> CONNECTING ...
                          \\-> DISCONNECTED
        any state -> SHUTDOWN (on stop)

    No failure of the underlying transport escapes this class; every failure
    becomes a log entry and a retry.
    """

    def __init__(self, config: SessionConfig, strategy: EditionStrategy,
                 transport_factory: TransportFactory):
        if config.edition is not strategy.edition:
            raise ValueError(
                f"Config for {config.edition.tag} paired with {strategy.tag} strategy"
            )
        self.config = config
        self.strategy = strategy
        self.transport_factory = transport_factory
        self.transport: Optional[Transport] = None
        self.state = LifecycleState.IDLE
        self.retry_delay = strategy.retry_delay
        self.consecutive_failures = 0
        self.fallback_applied = False
        self.last_failure: Optional[FailureKind] = None
        self.logger = edition_logger(__name__, strategy.tag)

        # (loop time, state) for every transition, newest last
        self.history: Deque[Tuple[float, LifecycleState]] = deque(maxlen=HISTORY_SIZE)
        # (loop time, protocol version) for every connection attempt
        self.attempts: Deque[Tuple[float, str]] = deque(maxlen=HISTORY_SIZE)

        self._task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._connected = asyncio.Event()
        self._stopping = False

    @property
    def edition(self) -> Edition:
        return self.strategy.edition

    @property
    def is_connected(self) -> bool:
        return self.state is LifecycleState.CONNECTED

    @property
    def keepalive_running(self) -> bool:
        return self._keepalive_task is not None and not self._keepalive_task.done()

    def start(self) -> None:
        """Begin connecting in the background. Calling it again is a no-op."""
        if self._task is not None or self.state is LifecycleState.SHUTDOWN:
            return
        self._task = asyncio.ensure_future(self._run())

    async def wait_connected(self) -> None:
        """Wait until the session is in the CONNECTED state."""
        await self._connected.wait()

    async def stop(self) -> None:
        """
        Shut the session down for good.

        Cancels any pending retry, handshake or keep-alive and closes the
        transport if one is held. Safe to call repeatedly.
        """
        self._stopping = True
        if self.state is not LifecycleState.SHUTDOWN:
            self._set_state(LifecycleState.SHUTDOWN)
            self.logger.info("Session stopped")

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._release()

    async def send_chat(self, text: str) -> None:
        """
        Send chat text through the live connection.

        Raises:
            NotConnectedError: If the session is not CONNECTED; the transport
                is not touched in that case
            SendError: If the transport rejects the message
        """
        transport = self.transport
        if self.state is not LifecycleState.CONNECTED or transport is None:
            raise NotConnectedError(
                f"[{self.strategy.tag}] Client is not connected (state: {self.state.value})"
            )
        try:
            await transport.send_chat(text)
        except AFKBotError:
            raise
        except Exception as e:
            raise SendError(f"[{self.strategy.tag}] Failed to send chat: {e}") from e

    async def _run(self) -> None:
        try:
            while not self._stopping:
                kind = await self._connect_once()
                if self._stopping:
                    break
                self._remediate(kind)
                self._set_state(LifecycleState.BACKOFF)
                self.logger.info(f"Attempting to reconnect in {self.retry_delay:g} seconds...")
                await asyncio.sleep(self.retry_delay)
                self.logger.info("Reconnecting...")
        finally:
            await self._release()

    async def _connect_once(self) -> FailureKind:
        """Run one connection attempt to its end and classify how it ended."""
        self._set_state(LifecycleState.CONNECTING)
        self.attempts.append((self._now(), self.config.protocol_version))
        self.logger.info(
            f"Attempting to connect with the following configuration: "
            f"{json.dumps(self.config.to_dict())}"
        )

        timeout = self.strategy.connect_timeout
        try:
            self.transport = self.transport_factory(self.config)
            if timeout is None:
                await self._handshake(self.transport)
            else:
                await asyncio.wait_for(self._handshake(self.transport), timeout)
        except asyncio.TimeoutError as e:
            error = e
            if timeout is not None:
                error = TransportTimeout(
                    f"No login from {self.config.address} within {timeout:g} seconds"
                )
            return await self._end(error, connecting=True)
        except Exception as e:
            return await self._end(e, connecting=True)

        self._on_connected()
        try:
            error = await self._pump(self.transport)
        except Exception as e:
            error = e
        return await self._end(error, connecting=False)

    async def _handshake(self, transport: Transport) -> None:
        await transport.connect()
        while True:
            event = await transport.next_event()
            if event.kind is EventKind.LOGIN:
                return
            if event.kind is EventKind.ERROR:
                raise event.error or AFKBotError("Unknown transport error")
            if event.kind is EventKind.DISCONNECT:
                raise ServerInitiatedDisconnect(parse_kick_reason(event.reason))
            await self._on_chat(event)

    async def _pump(self, transport: Transport) -> BaseException:
        """Consume events while connected; return the failure that ended it."""
        while True:
            event = await transport.next_event()
            if event.kind is EventKind.CHAT:
                await self._on_chat(event)
            elif event.kind is EventKind.ERROR:
                return event.error or AFKBotError("Unknown transport error")
            elif event.kind is EventKind.DISCONNECT:
                return ServerInitiatedDisconnect(parse_kick_reason(event.reason))
            else:
                self.logger.debug(f"Ignoring {event.kind.value} event while connected")

    def _on_connected(self) -> None:
        self._set_state(LifecycleState.CONNECTED)
        self.consecutive_failures = 0
        self.logger.info(f"Successfully connected to {self.config.address}")
        self.logger.info(f"Logged in as {self.config.username}")
        self.logger.info("AFK mode active - The client will stay connected without moving")
        self._connected.set()
        self._start_keepalive()

    async def _on_chat(self, event: TransportEvent) -> None:
        if event.sender is not None and event.sender == self.config.username:
            return
        self.logger.info(f"{event.sender or 'Server'}: {event.text}")

        if not self.strategy.auto_reply or not self.is_connected or self.transport is None:
            return
        if (event.text or "").lower() == PING_TRIGGER:
            try:
                await self.transport.send_chat(PING_REPLY)
            except Exception as e:
                self.logger.warning(f"Failed to answer {PING_TRIGGER}: {e}")

    async def _end(self, error: BaseException, connecting: bool) -> FailureKind:
        """Tear down the current attempt and log why it ended."""
        await self._stop_keepalive()
        await self._close_transport()
        self._connected.clear()
        self._set_state(LifecycleState.DISCONNECTED)

        kind = classify_failure(error)
        self.last_failure = kind
        self.consecutive_failures += 1

        if kind is FailureKind.KICKED:
            self.logger.warning(f"Disconnected from {self.config.address}. Reason: {error}")
        else:
            what = "Connection attempt" if connecting else "Connection"
            self.logger.error(
                f"{what} to {self.config.address} failed ({kind.value}): "
                f"{type(error).__name__}: {error}"
            )
            for hint in failure_hints(kind, self.config):
                self.logger.error(hint)
            self.logger.debug("Full error details", exc_info=error)
        return kind

    def _remediate(self, kind: FailureKind) -> None:
        """Switch to the fallback protocol version once after a mismatch."""
        if kind is not FailureKind.VERSION_MISMATCH or self.fallback_applied:
            return
        fallback = self.config.fallback_version
        if not fallback or fallback == self.config.protocol_version:
            return
        self.logger.warning(
            f"Switching protocol version {self.config.protocol_version} -> {fallback} "
            f"for the next attempt"
        )
        self.config = replace(self.config, protocol_version=fallback)
        self.fallback_applied = True

    def _start_keepalive(self) -> None:
        interval = self.strategy.keepalive_interval
        if interval is None or self.transport is None:
            return
        self._keepalive_task = asyncio.ensure_future(self._keepalive(self.transport, interval))

    async def _keepalive(self, transport: Transport, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await transport.write(KEEPALIVE_MESSAGE, {
                    "request_time": int(time.time() * 1000),
                    "response_time": 0,
                })
            except Exception as e:
                # A lost tick is not a lost connection
                self.logger.debug(f"Keep-alive failed: {e}")

    async def _stop_keepalive(self) -> None:
        task, self._keepalive_task = self._keepalive_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _close_transport(self) -> None:
        transport, self.transport = self.transport, None
        if transport is None:
            return
        try:
            await transport.close()
        except Exception as e:
            self.logger.warning(f"Error during disconnect: {e}")

    async def _release(self) -> None:
        await self._stop_keepalive()
        await self._close_transport()
        self._connected.clear()

    def _set_state(self, state: LifecycleState) -> None:
        if self.state is LifecycleState.SHUTDOWN:
            return
        self.state = state
        self.history.append((self._now(), state))
        self.logger.debug(f"State -> {state.value}")

    @staticmethod
    def _now() -> float:
        return asyncio.get_event_loop().time()

    def __repr__(self) -> str:
        return (
            f"ProtocolSession(edition={self.edition.tag}, state={self.state.value}, "
            f"address={self.config.address})"
        )
