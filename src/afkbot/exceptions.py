"""
Custom exceptions for the dual-edition AFK client.
"""


class AFKBotError(Exception):
    """Base exception for all AFK client related errors."""
    pass


class ConfigError(AFKBotError):
    """Raised when configuration cannot be resolved into valid parameters."""
    pass


class TransportError(AFKBotError):
    """Raised when the underlying protocol transport fails."""
    pass


class TransportRefused(TransportError):
    """Raised when the server is unreachable or refuses the connection."""
    pass


class TransportTimeout(TransportError):
    """Raised when a handshake or round-trip exceeds its bound."""
    pass


class ProtocolVersionMismatch(TransportError):
    """Raised when client and server protocol versions are incompatible."""
    pass


class AuthenticationFailure(TransportError):
    """Raised when the stateful edition fails to authenticate."""
    pass


class ServerInitiatedDisconnect(TransportError):
    """Raised when the server kicks or disconnects the client."""

    def __init__(self, reason: str = "Unknown"):
        super().__init__(reason)
        self.reason = reason


class SendError(AFKBotError):
    """Raised when chat text cannot be handed to the transport."""
    pass


class NotConnectedError(SendError):
    """Raised when sending on a session that is not connected."""
    pass


class RouteError(AFKBotError):
    """Raised when no session can carry an outbound chat message."""
    pass
