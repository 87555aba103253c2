"""
Configuration resolution for the AFK client.

Values come from the process environment, optionally seeded from a ``.env``
file. Every connection key has a default; malformed values fail fast with
ConfigError instead of degrading into a confusing connection failure later
on. The transport of an enabled edition has no default: it must name a real
protocol adapter, or the operator must ask for the offline loopback
explicitly.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .editions import (
    DATAGRAM_CONNECT_TIMEOUT, DATAGRAM_KEEPALIVE_INTERVAL, DATAGRAM_RETRY_DELAY,
    STAGGER_DELAY, STATEFUL_RETRY_DELAY, Edition, EditionStrategy,
    datagram_strategy, stateful_strategy,
)
from .exceptions import ConfigError


DEFAULT_HOST = "localhost"
DEFAULT_JAVA_PORT = 25565
DEFAULT_BEDROCK_PORT = 19132
DEFAULT_JAVA_USERNAME = "AFKBot"
DEFAULT_BEDROCK_USERNAME = "BedrockAFKBot"
DEFAULT_VERSION = "1.21.70"
DEFAULT_AUTH = "microsoft"
DEFAULT_BEDROCK_FALLBACK_VERSION = "1.21.70"
LOOPBACK_TRANSPORT = "loopback"


@dataclass(frozen=True)
class SessionConfig:
    """Resolved connection parameters for one protocol edition."""
    edition: Edition
    host: str
    port: int
    username: str
    protocol_version: str
    auth_mode: Optional[str] = None
    fallback_version: Optional[str] = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def to_dict(self) -> Dict[str, object]:
        """Connection parameters as logged before each attempt."""
        data: Dict[str, object] = {
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "version": self.protocol_version,
        }
        if self.auth_mode is not None:
            data["auth"] = self.auth_mode
        return data


@dataclass(frozen=True)
class AppConfig:
    """
    Complete client configuration.

    A disabled edition has no SessionConfig at all, so nothing downstream can
    accidentally build a session for it.
    """
    sessions: Dict[Edition, SessionConfig] = field(default_factory=dict)
    strategies: Dict[Edition, EditionStrategy] = field(default_factory=dict)
    transports: Dict[Edition, str] = field(default_factory=dict)
    stagger_delay: float = STAGGER_DELAY

    def is_enabled(self, edition: Edition) -> bool:
        return edition in self.sessions


def _get(env: Mapping[str, str], key: str, default: Optional[str] = None) -> Optional[str]:
    value = env.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


def _parse_flag(env: Mapping[str, str], key: str) -> bool:
    value = _get(env, key, "false")
    return value.lower() == "true"


def _parse_port(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        port = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer port number, got {raw!r}")
    if not 1 <= port <= 65535:
        raise ConfigError(f"{key} must be between 1 and 65535, got {port}")
    return port


def _parse_seconds(env: Mapping[str, str], key: str, default: float,
                   allow_zero: bool = True) -> float:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        seconds = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number of seconds, got {raw!r}")
    if seconds < 0 or (seconds == 0 and not allow_zero) or seconds != seconds:
        bound = ">= 0" if allow_zero else "> 0"
        raise ConfigError(f"{key} must be {bound} seconds, got {raw!r}")
    return seconds


def _transport(env: Mapping[str, str], key: str, enabled_key: str, loopback: bool) -> str:
    if loopback:
        return LOOPBACK_TRANSPORT
    path = _get(env, key)
    if path is None:
        raise ConfigError(
            f"{key} must name a transport ('package.module:ClassName') when {enabled_key}=true; "
            f"run with --loopback for an offline dry run"
        )
    return path


def java_session_config(env: Mapping[str, str]) -> SessionConfig:
    """Build the stateful edition's SessionConfig from environment values."""
    return SessionConfig(
        edition=Edition.STATEFUL,
        host=_get(env, "HOST", DEFAULT_HOST),
        port=_parse_port(env, "PORT", DEFAULT_JAVA_PORT),
        username=_get(env, "USERNAME", DEFAULT_JAVA_USERNAME),
        protocol_version=_get(env, "VERSION", DEFAULT_VERSION),
        auth_mode=_get(env, "AUTH", DEFAULT_AUTH),
        fallback_version=_get(env, "JAVA_FALLBACK_VERSION"),
    )


def bedrock_session_config(env: Mapping[str, str]) -> SessionConfig:
    """Build the datagram edition's SessionConfig from environment values."""
    host = _get(env, "BEDROCK_HOST") or _get(env, "HOST", DEFAULT_HOST)
    return SessionConfig(
        edition=Edition.DATAGRAM,
        host=host,
        port=_parse_port(env, "BEDROCK_PORT", DEFAULT_BEDROCK_PORT),
        username=_get(env, "BEDROCK_USERNAME", DEFAULT_BEDROCK_USERNAME),
        protocol_version=_get(env, "BEDROCK_VERSION", DEFAULT_VERSION),
        fallback_version=_get(
            env, "BEDROCK_FALLBACK_VERSION", DEFAULT_BEDROCK_FALLBACK_VERSION
        ),
    )


def config_from_mapping(env: Mapping[str, str], loopback: bool = False) -> AppConfig:
    """
    Resolve an AppConfig from a mapping of environment-style keys.

    Args:
        env: Mapping of configuration keys to raw string values
        loopback: Use the offline loopback transport for every enabled
            edition instead of the configured adapters

    Returns:
        AppConfig: Fully validated configuration

    Raises:
        ConfigError: If any value is malformed, or an enabled edition has no
            transport configured
    """
    sessions: Dict[Edition, SessionConfig] = {}
    transports: Dict[Edition, str] = {}

    strategies = {
        Edition.STATEFUL: stateful_strategy(
            retry_delay=_parse_seconds(env, "JAVA_RETRY_DELAY", STATEFUL_RETRY_DELAY),
        ),
        Edition.DATAGRAM: datagram_strategy(
            retry_delay=_parse_seconds(env, "BEDROCK_RETRY_DELAY", DATAGRAM_RETRY_DELAY),
            keepalive_interval=_parse_seconds(
                env, "BEDROCK_KEEPALIVE_INTERVAL", DATAGRAM_KEEPALIVE_INTERVAL,
                allow_zero=False,
            ),
            connect_timeout=_parse_seconds(
                env, "BEDROCK_CONNECT_TIMEOUT", DATAGRAM_CONNECT_TIMEOUT,
                allow_zero=False,
            ),
        ),
    }

    if _parse_flag(env, "JAVA_ENABLED"):
        sessions[Edition.STATEFUL] = java_session_config(env)
        transports[Edition.STATEFUL] = _transport(env, "JAVA_TRANSPORT", "JAVA_ENABLED", loopback)

    if _parse_flag(env, "BEDROCK_ENABLED"):
        sessions[Edition.DATAGRAM] = bedrock_session_config(env)
        transports[Edition.DATAGRAM] = _transport(env, "BEDROCK_TRANSPORT", "BEDROCK_ENABLED", loopback)

    return AppConfig(
        sessions=sessions,
        strategies=strategies,
        transports=transports,
        stagger_delay=_parse_seconds(env, "BEDROCK_STAGGER_DELAY", STAGGER_DELAY),
    )


def load_config(env_file: Optional[str] = None, loopback: bool = False) -> AppConfig:
    """
    Load configuration from the process environment.

    Args:
        env_file: Optional path to a dotenv file; when omitted a ``.env`` in
            the working directory (or its parents) is used if present
        loopback: Use the offline loopback transport for every enabled edition

    Returns:
        AppConfig: Fully validated configuration

    Raises:
        ConfigError: If the dotenv file is missing or any value is malformed
    """
    if env_file is not None and not os.path.isfile(env_file):
        raise ConfigError(f"Environment file not found: {env_file}")

    dotenv_path = env_file if env_file is not None else find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)

    return config_from_mapping(os.environ, loopback=loopback)
