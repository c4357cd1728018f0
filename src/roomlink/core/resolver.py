"""Hostname resolution for endpoints."""

import ipaddress
import logging
import socket

from roomlink.api.protocol import RoomLinkError
from roomlink.models.endpoint import Endpoint, ResolvedEndpoint

logger = logging.getLogger(__name__)


class ResolutionError(RoomLinkError):
    """A hostname could not be resolved to an address."""

    def __init__(self, address: str, reason: str) -> None:
        self.address = address
        super().__init__(f"Could not resolve {address!r}: {reason}")


def resolve_host(address: str) -> str:
    """Resolve a hostname to a concrete IP address.

    IP literals are returned unchanged without a lookup. For names, the first
    address returned by the system resolver is used, whatever its family.

    Args:
        address: Hostname or IP address.

    Returns:
        IP address string.

    Raises:
        ResolutionError: If the name cannot be resolved.
    """
    try:
        return str(ipaddress.ip_address(address))
    except ValueError:
        pass

    try:
        infos = socket.getaddrinfo(address, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(address, str(e)) from e

    if not infos:
        raise ResolutionError(address, "no addresses returned")

    ip = str(infos[0][4][0])
    logger.debug("Resolved %s to %s", address, ip)
    return ip


def resolve_endpoint(endpoint: Endpoint) -> ResolvedEndpoint:
    """Resolve an endpoint's address, keeping its port."""
    return ResolvedEndpoint(ip=resolve_host(endpoint.address), port=endpoint.port)
