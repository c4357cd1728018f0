"""TCP reachability probing for game server endpoints.

A probe only answers "can a TCP connection be opened?". The probing socket is
closed straight away and never used for traffic; the real connection is opened
afterwards.
"""

import logging
import socket
from dataclasses import dataclass

from roomlink.models.endpoint import Endpoint

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 1000
DEFAULT_ATTEMPTS = 3


def _connect_once(address: str, port: int, timeout: float) -> None:
    """Open and close one TCP connection to the first address the name resolves to.

    Unlike socket.create_connection, which walks every resolved address with
    the full timeout each, this keeps a single attempt bounded by timeout.
    """
    infos = socket.getaddrinfo(address, port, type=socket.SOCK_STREAM)
    if not infos:
        raise OSError(f"No addresses for {address}")
    family, sock_type, proto, _, sockaddr = infos[0]
    with socket.socket(family, sock_type, proto) as sock:
        sock.settimeout(timeout)
        sock.connect(sockaddr)


def is_port_open(
    address: str,
    port: int,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    attempts: int = DEFAULT_ATTEMPTS,
) -> bool:
    """Check whether a TCP connection to address:port can be established.

    Tries up to ``attempts`` sequential connections, each bounded by
    ``timeout_ms``. Worst-case duration is roughly ``attempts * timeout_ms``
    (plus name lookup time when ``address`` is a hostname).

    Args:
        address: Hostname or IP address.
        port: TCP port.
        timeout_ms: Timeout per attempt in milliseconds.
        attempts: Maximum number of attempts.

    Returns:
        True on the first successful connection, False if all attempts fail.

    Raises:
        ValueError: If timeout_ms or attempts is not positive.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    if timeout_ms <= 0:
        raise ValueError(f"timeout_ms must be > 0, got {timeout_ms}")

    timeout = timeout_ms / 1000
    for attempt in range(1, attempts + 1):
        try:
            _connect_once(address, port, timeout)
        except TimeoutError:
            logger.debug(
                "Probe %d/%d to %s:%d timed out after %dms", attempt, attempts, address, port, timeout_ms
            )
        except (OSError, UnicodeError) as e:
            # UnicodeError: names the IDNA codec rejects, e.g. labels over 63 chars
            logger.debug("Probe %d/%d to %s:%d failed: %s", attempt, attempts, address, port, e)
        else:
            logger.debug("Probe %d/%d to %s:%d succeeded", attempt, attempts, address, port)
            return True

    return False


@dataclass(frozen=True, slots=True)
class ProbePolicy:
    """How hard to try each endpoint before giving up on it.

    Attributes:
        timeout_ms: Timeout per attempt in milliseconds.
        attempts: Attempts per endpoint.
    """

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    attempts: int = DEFAULT_ATTEMPTS

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")

    @property
    def max_duration(self) -> float:
        """Return the worst-case probe time for one endpoint, in seconds."""
        return self.attempts * self.timeout_ms / 1000

    def check(self, endpoint: Endpoint) -> bool:
        """Probe an endpoint with this policy."""
        return is_port_open(endpoint.address, endpoint.port, self.timeout_ms, self.attempts)
