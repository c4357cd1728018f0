"""Client configuration.

Configuration is immutable and passed to each Multiplayer instance, so two
clients in one process can use different settings without interfering.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from roomlink.core.probe import DEFAULT_ATTEMPTS, DEFAULT_TIMEOUT_MS, ProbePolicy
from roomlink.models.endpoint import MAX_PORT

logger = logging.getLogger(__name__)

DEFAULT_DEV_SERVER_PORT = 8184
DEFAULT_RPC_TIMEOUT = 10.0

# Environment variables read by MultiplayerConfig.from_env()
ENV_DEV_SERVER = "ROOMLINK_DEV_SERVER"
ENV_SECURE = "ROOMLINK_SECURE"
ENV_PROBE_TIMEOUT_MS = "ROOMLINK_PROBE_TIMEOUT_MS"
ENV_PROBE_ATTEMPTS = "ROOMLINK_PROBE_ATTEMPTS"
ENV_RPC_TIMEOUT = "ROOMLINK_RPC_TIMEOUT"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class DevelopmentServer:
    """A local development server that replaces backend-supplied endpoints.

    Attributes:
        address: Hostname or IP of the development server.
        port: TCP port (default 8184).
    """

    address: str
    port: int = DEFAULT_DEV_SERVER_PORT

    def __post_init__(self) -> None:
        """Validate fields."""
        if not self.address:
            raise ValueError("Development server address must not be empty")
        if not 0 < self.port <= MAX_PORT:
            raise ValueError(f"Port out of range: {self.port}")

    @classmethod
    def parse(cls, value: str) -> "DevelopmentServer":
        """Parse ``host``, ``host:port`` or ``[ipv6]:port``.

        Raises:
            ValueError: If the value is empty or the port is not a number.
        """
        value = value.strip()
        if value.startswith("["):
            host, sep, rest = value[1:].partition("]")
            if not sep:
                raise ValueError(f"Unterminated IPv6 address: {value!r}")
            if not rest:
                return cls(host)
            if not rest.startswith(":"):
                raise ValueError(f"Invalid development server: {value!r}")
            return cls(host, _parse_port(rest[1:]))

        # A bare IPv6 literal has several colons and no port
        if value.count(":") == 1:
            host, port = value.split(":")
            return cls(host, _parse_port(port))
        return cls(value)

    def __str__(self) -> str:
        """Return host:port."""
        if ":" in self.address:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


def _parse_port(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid port: {value!r}") from None


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_number(name: str, value: str | None, default: int | float) -> int | float:
    if value is None or not value.strip():
        return default
    try:
        return type(default)(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True, slots=True)
class MultiplayerConfig:
    """Settings for a Multiplayer client.

    Attributes:
        development_server: When set, rooms are flagged as development rooms
            and joins connect to this server instead of the advertised endpoints.
        use_secure_connections: Wrap room connections in TLS.
        probe_policy: Reachability probing policy for endpoint selection.
        rpc_timeout: Control channel timeout in seconds.
    """

    development_server: DevelopmentServer | None = None
    use_secure_connections: bool = False
    probe_policy: ProbePolicy = field(default_factory=ProbePolicy)
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT

    @property
    def is_dev(self) -> bool:
        """Return True if a development server override is configured."""
        return self.development_server is not None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "MultiplayerConfig":
        """Build a config from ROOMLINK_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ).

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        env = os.environ if environ is None else environ

        dev_server: DevelopmentServer | None = None
        raw_dev = env.get(ENV_DEV_SERVER, "").strip()
        if raw_dev:
            dev_server = DevelopmentServer.parse(raw_dev)
            logger.info("Using development server %s", dev_server)

        secure = _parse_bool(ENV_SECURE, env.get(ENV_SECURE, ""))

        policy = ProbePolicy(
            timeout_ms=int(_parse_number(ENV_PROBE_TIMEOUT_MS, env.get(ENV_PROBE_TIMEOUT_MS), DEFAULT_TIMEOUT_MS)),
            attempts=int(_parse_number(ENV_PROBE_ATTEMPTS, env.get(ENV_PROBE_ATTEMPTS), DEFAULT_ATTEMPTS)),
        )
        rpc_timeout = float(_parse_number(ENV_RPC_TIMEOUT, env.get(ENV_RPC_TIMEOUT), DEFAULT_RPC_TIMEOUT))

        return cls(
            development_server=dev_server,
            use_secure_connections=secure,
            probe_policy=policy,
            rpc_timeout=rpc_timeout,
        )
