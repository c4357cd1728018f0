"""Network endpoint models."""

from dataclasses import dataclass

MAX_PORT = 65535


@dataclass(frozen=True, slots=True)
class Endpoint:
    """A game server candidate advertised by the backend.

    Lists of endpoints keep the backend's order, most preferred first.

    Attributes:
        address: Hostname or IP address.
        port: TCP port.
    """

    address: str
    port: int

    def __post_init__(self) -> None:
        """Validate the port range."""
        if not 0 <= self.port <= MAX_PORT:
            raise ValueError(f"Port out of range: {self.port}")

    def __str__(self) -> str:
        """Return host:port."""
        return f"{self.address}:{self.port}"


@dataclass(frozen=True, slots=True)
class ResolvedEndpoint:
    """An endpoint whose address has been resolved to a concrete IP.

    Attributes:
        ip: IPv4 or IPv6 address literal.
        port: TCP port.
    """

    ip: str
    port: int

    @property
    def socket_address(self) -> tuple[str, int]:
        """Return the (host, port) tuple for socket APIs."""
        return (self.ip, self.port)

    def __str__(self) -> str:
        """Return ip:port, bracketing IPv6 addresses."""
        if ":" in self.ip:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"
