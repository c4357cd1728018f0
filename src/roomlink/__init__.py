"""Client library for creating and joining multiplayer rooms."""

from roomlink.api import (
    ApplicationError,
    ErrorCode,
    RoomLinkError,
    RpcChannel,
    TransportError,
)
from roomlink.core import (
    AsyncMultiplayer,
    Connection,
    DevelopmentServer,
    Multiplayer,
    MultiplayerConfig,
    NoReachableEndpointError,
    ProbePolicy,
    ResolutionError,
)
from roomlink.models import Endpoint, ResolvedEndpoint

__version__ = "0.1.0"

__all__ = [
    "ApplicationError",
    "AsyncMultiplayer",
    "Connection",
    "DevelopmentServer",
    "Endpoint",
    "ErrorCode",
    "Multiplayer",
    "MultiplayerConfig",
    "NoReachableEndpointError",
    "ProbePolicy",
    "ResolutionError",
    "ResolvedEndpoint",
    "RoomLinkError",
    "RpcChannel",
    "TransportError",
]
