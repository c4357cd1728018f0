"""Room session negotiation.

Classes:
    Multiplayer: Create/join rooms and pick a reachable game server.
    AsyncMultiplayer: Awaitable wrapper around Multiplayer.
    Connection: Live connection to a joined room.
    MultiplayerConfig: Immutable client settings.
"""

from roomlink.core.async_multiplayer import AsyncMultiplayer
from roomlink.core.config import DevelopmentServer, MultiplayerConfig
from roomlink.core.connection import Connection
from roomlink.core.multiplayer import Multiplayer, NoReachableEndpointError
from roomlink.core.probe import ProbePolicy, is_port_open
from roomlink.core.resolver import ResolutionError, resolve_endpoint, resolve_host

__all__ = [
    "AsyncMultiplayer",
    "Connection",
    "DevelopmentServer",
    "Multiplayer",
    "MultiplayerConfig",
    "NoReachableEndpointError",
    "ProbePolicy",
    "ResolutionError",
    "is_port_open",
    "resolve_endpoint",
    "resolve_host",
]
