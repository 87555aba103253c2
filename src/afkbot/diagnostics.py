"""
Failure classification and operator hints.

Transports report failures either as our own TransportError subclasses or as
whatever the underlying library raises. This module maps both onto one small
taxonomy so sessions can log a consistent cause and decide on remediation.
"""

import asyncio
import errno
import json
from enum import Enum
from typing import List, Optional

from .config import SessionConfig
from .editions import Edition
from .exceptions import (
    AuthenticationFailure, ProtocolVersionMismatch, ServerInitiatedDisconnect,
    TransportRefused, TransportTimeout,
)


SUPPORTED_BEDROCK_VERSIONS = "1.21.50-1.21.51, 1.21.60-1.21.62, 1.21.70"


class FailureKind(Enum):
    """Classified cause of a failed or ended connection."""
    REFUSED = "connection refused"
    TIMEOUT = "timeout"
    VERSION_MISMATCH = "protocol version mismatch"
    AUTHENTICATION = "authentication failure"
    KICKED = "server initiated disconnect"
    UNKNOWN = "unknown"


def classify_failure(error: Optional[BaseException]) -> FailureKind:
    """
    Classify a transport failure.

    Args:
        error: Exception raised or reported by the transport

    Returns:
        FailureKind: Recognised cause, UNKNOWN when nothing matches
    """
    if error is None:
        return FailureKind.UNKNOWN

    if isinstance(error, TransportRefused) or isinstance(error, ConnectionRefusedError):
        return FailureKind.REFUSED
    if isinstance(error, (TransportTimeout, asyncio.TimeoutError)):
        return FailureKind.TIMEOUT
    if isinstance(error, ProtocolVersionMismatch):
        return FailureKind.VERSION_MISMATCH
    if isinstance(error, AuthenticationFailure):
        return FailureKind.AUTHENTICATION
    if isinstance(error, ServerInitiatedDisconnect):
        return FailureKind.KICKED

    code = getattr(error, "errno", None) or getattr(error, "code", None)
    if code in (errno.ECONNREFUSED, "ECONNREFUSED"):
        return FailureKind.REFUSED
    if code in (errno.ETIMEDOUT, "ETIMEDOUT"):
        return FailureKind.TIMEOUT

    message = str(error).lower()
    if "version" in message:
        return FailureKind.VERSION_MISMATCH
    if "auth" in message:
        return FailureKind.AUTHENTICATION
    if "refused" in message:
        return FailureKind.REFUSED
    if "timed out" in message or "timeout" in message:
        return FailureKind.TIMEOUT
    return FailureKind.UNKNOWN


def failure_hints(kind: FailureKind, config: SessionConfig) -> List[str]:
    """
    Human-readable hints for a classified failure.

    Args:
        kind: Classified failure
        config: Configuration of the session that failed

    Returns:
        List of hint lines, empty when there is nothing useful to add
    """
    if kind is FailureKind.REFUSED:
        return [
            f"Connection refused to {config.address}",
            "Possible causes:",
            "1. The Minecraft server is not running",
            "2. The server address or port is incorrect",
            "3. The server is blocking connections from this IP",
            "4. Firewall is blocking the connection",
        ]
    if kind is FailureKind.TIMEOUT:
        return [
            f"No handshake response from {config.address} within the allowed time",
            "The server may be overloaded or the port may be filtered",
        ]
    if kind is FailureKind.VERSION_MISMATCH:
        hints = [f"Version compatibility issue detected (configured {config.protocol_version})"]
        if config.edition is Edition.DATAGRAM:
            hints.append("Please update BEDROCK_VERSION in your .env file")
            hints.append(f"Server supports: {SUPPORTED_BEDROCK_VERSIONS}")
        else:
            hints.append("Please update VERSION in your .env file")
        return hints
    if kind is FailureKind.AUTHENTICATION:
        return [
            f"Authentication failed for {config.username} (auth mode: {config.auth_mode or 'none'})",
            "Check the account credentials and the AUTH setting",
        ]
    return []


def parse_kick_reason(raw: object) -> str:
    """
    Extract readable text from a kick/disconnect reason.

    Reasons are often JSON chat components such as
    ``{"text": "Kicked", "extra": [{"text": " for idling"}]}``. Anything that
    does not parse as such is returned unchanged.

    Args:
        raw: Reason as delivered by the transport

    Returns:
        str: Readable reason text
    """
    if raw is None:
        return "Unknown"
    if isinstance(raw, dict):
        component = raw
    else:
        text = str(raw)
        try:
            component = json.loads(text)
        except ValueError:
            return text or "Unknown"
        if not isinstance(component, dict):
            return text

    parts = []
    if component.get("text"):
        parts.append(str(component["text"]))
    extra = component.get("extra")
    if isinstance(extra, list):
        parts.append("".join(
            str(e.get("text", "")) if isinstance(e, dict) else str(e) for e in extra
        ))
    readable = "".join(parts).strip()
    if readable:
        return readable
    if component.get("translate"):
        return str(component["translate"])
    return json.dumps(component) if not isinstance(raw, str) else raw
