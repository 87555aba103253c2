"""
Integration tests running the whole client over the loopback transport.

These exercise configuration, supervisor, sessions, router and transport
together without mocks. Delays are shortened through the same environment
keys an operator would use.
"""

import asyncio
import io

import pytest
from rich.console import Console

from conftest import wait_until
from src.afkbot.client import AFKClient
from src.afkbot.config import config_from_mapping
from src.afkbot.editions import PING_REPLY, Edition
from src.afkbot.session import LifecycleState


pytestmark = pytest.mark.integration


ENV = {
    "JAVA_ENABLED": "true",
    "BEDROCK_ENABLED": "true",
    "HOST": "localhost",
    "JAVA_TRANSPORT": "loopback",
    "BEDROCK_TRANSPORT": "src.afkbot.transports:LoopbackTransport",
    "JAVA_RETRY_DELAY": "0.01",
    "BEDROCK_RETRY_DELAY": "0.01",
    "BEDROCK_STAGGER_DELAY": "0.02",
    "BEDROCK_KEEPALIVE_INTERVAL": "0.01",
}


@pytest.fixture
def console():
    return Console(file=io.StringIO(), force_terminal=False, width=120)


class TestLoopbackIntegration:
    """Full stack over the loopback transport."""

    @pytest.mark.asyncio
    async def test_full_session(self, console):
        client = AFKClient(config_from_mapping(ENV), console=console)
        java = client.supervisor.get(Edition.STATEFUL)
        bedrock = client.supervisor.get(Edition.DATAGRAM)
        seen = {}

        async def operator():
            await wait_until(lambda: java.is_connected and bedrock.is_connected)
            seen["java"] = java.transport
            seen["bedrock"] = bedrock.transport
            yield "hello\n"
            yield "/bedrock hi\n"
            yield "!ping\n"
            await wait_until(lambda: PING_REPLY in seen["java"].sent)
            await wait_until(lambda: len(seen["bedrock"].writes) >= 3)
            yield "/quit\n"

        assert await client.run(operator()) == 0

        assert seen["java"].sent == ["hello", "!ping", PING_REPLY]
        assert seen["bedrock"].sent == ["hi"]
        names = [name for name, _ in seen["bedrock"].writes]
        assert "text" in names
        assert "tick_sync" in names
        assert java.state is LifecycleState.SHUTDOWN
        assert bedrock.state is LifecycleState.SHUTDOWN
        assert "[JAVA] Sent: hello" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_staggered_start(self, console):
        client = AFKClient(config_from_mapping(ENV), console=console)
        java = client.supervisor.get(Edition.STATEFUL)
        bedrock = client.supervisor.get(Edition.DATAGRAM)

        async def operator():
            await wait_until(lambda: bedrock.is_connected)
            yield "/quit\n"

        await client.run(operator())

        java_login = next(t for t, s in java.history if s is LifecycleState.CONNECTED)
        assert bedrock.attempts[0][0] >= java_login + 0.02 - 0.005

    @pytest.mark.asyncio
    async def test_java_only(self, console):
        env = dict(ENV, BEDROCK_ENABLED="false")
        client = AFKClient(config_from_mapping(env), console=console)

        async def operator():
            await wait_until(lambda: client.supervisor.get(Edition.STATEFUL).is_connected)
            yield "/bedrock hi\n"
            yield "/quit\n"

        await client.run(operator())

        assert client.supervisor.get(Edition.DATAGRAM) is None
        assert "[BEDROCK] Client is not connected or disabled" in console.file.getvalue()
