"""Room operations: create, join, and create-or-join.

Each operation issues exactly one request on the control channel. Join-type
operations then pick one game server from the endpoints the backend returned:
candidates are probed one at a time in the backend's order and the first
reachable one wins, even if a later one would answer faster.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from roomlink.api.channel import RpcChannel
from roomlink.api.messages import (
    CreateJoinRoomArgs,
    CreateJoinRoomOutput,
    CreateRoomArgs,
    CreateRoomOutput,
    JoinRoomArgs,
    JoinRoomOutput,
    ServerEndpoint,
    to_pairs,
)
from roomlink.api.protocol import (
    OP_CREATE_JOIN_ROOM,
    OP_CREATE_ROOM,
    OP_JOIN_ROOM,
    RoomLinkError,
    raise_for_error,
)
from roomlink.core.config import DevelopmentServer, MultiplayerConfig
from roomlink.core.connection import Connection
from roomlink.core.resolver import ResolutionError, resolve_endpoint
from roomlink.models.endpoint import Endpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NoReachableEndpointError(RoomLinkError):
    """None of the candidate endpoints could be reached."""

    def __init__(self, endpoints: Iterable[Endpoint] = (), message: str | None = None) -> None:
        self.endpoints = list(endpoints)
        super().__init__(
            message
            or "Unable to join room - unable to establish connection from any endpoint(s) returned by API."
        )


class Multiplayer:
    """Creates and joins rooms on the backend.

    Example:
        channel = RpcChannel.from_socket(authenticated_socket)
        multiplayer = Multiplayer(channel, MultiplayerConfig(use_secure_connections=True))
        with multiplayer.create_join_room("lobby", "bounce") as connection:
            connection.send_message("hello")
    """

    def __init__(self, channel: RpcChannel, config: MultiplayerConfig | None = None) -> None:
        """Initialize with a control channel and an immutable config.

        Args:
            channel: Connected control channel.
            config: Client settings (defaults if omitted).
        """
        self._channel = channel
        self._config = config or MultiplayerConfig()

    @property
    def channel(self) -> RpcChannel:
        """Return the control channel."""
        return self._channel

    @property
    def config(self) -> MultiplayerConfig:
        """Return the client configuration."""
        return self._config

    def create_room(
        self,
        room_id: str | None,
        room_type: str,
        visible: bool = True,
        room_data: Mapping[str, str] | None = None,
    ) -> str:
        """Create a room without joining it.

        Args:
            room_id: Requested room id, or None to let the backend pick one.
            room_type: Server-side room type to run.
            visible: Whether the room shows up in room listings.
            room_data: Initial room data.

        Returns:
            The id of the created room.

        Raises:
            TransportError: If the control channel failed.
            ApplicationError: If the backend rejected the request.
        """
        output = self._request(
            OP_CREATE_ROOM,
            CreateRoomArgs(
                room_id=room_id or "",
                room_type=room_type,
                visible=visible,
                room_data=to_pairs(room_data),
                is_dev_room=self._config.is_dev,
            ),
            CreateRoomOutput,
        )
        logger.info("Created room %s (%s)", output.room_id, room_type)
        return output.room_id

    def join_room(self, room_id: str, join_data: Mapping[str, str] | None = None) -> Connection:
        """Join a running room.

        Always connects through the endpoints the backend returned; a configured
        development server only marks the request as a dev room.

        Raises:
            TransportError: If the control channel failed.
            ApplicationError: If the backend rejected the request.
            NoReachableEndpointError: If no game server could be reached.
        """
        output = self._request(
            OP_JOIN_ROOM,
            JoinRoomArgs(
                room_id=room_id,
                join_data=to_pairs(join_data),
                is_dev_room=self._config.is_dev,
            ),
            JoinRoomOutput,
        )
        return self.select_endpoint(_to_endpoints(output.endpoints), output.join_key)

    def create_join_room(
        self,
        room_id: str,
        room_type: str,
        visible: bool = True,
        room_data: Mapping[str, str] | None = None,
        join_data: Mapping[str, str] | None = None,
    ) -> Connection:
        """Create a room if it doesn't exist yet, and join it.

        Args:
            room_id: Id of the room to create or join.
            room_type: Room type used if the room has to be created.
            visible: Listing visibility used if the room has to be created.
            room_data: Initial room data used if the room has to be created.
            join_data: Data sent to the room along with the join.

        Raises:
            TransportError: If the control channel failed.
            ApplicationError: If the backend rejected the request.
            NoReachableEndpointError: If no game server could be reached.
        """
        output = self._request(
            OP_CREATE_JOIN_ROOM,
            CreateJoinRoomArgs(
                room_id=room_id,
                server_type=room_type,
                visible=visible,
                room_data=to_pairs(room_data),
                join_data=to_pairs(join_data),
                is_dev_room=self._config.is_dev,
            ),
            CreateJoinRoomOutput,
        )
        return self._connect(output.join_key, output.endpoints)

    def _request(self, operation_id: int, args: Any, output_type: type[T]) -> T:
        result = self._channel.request(operation_id, args, output_type)
        if not result.success:
            raise_for_error(result.error)
        return result.result

    def _connect(self, join_key: str, endpoints: list[ServerEndpoint]) -> Connection:
        dev = self._config.development_server
        if dev is not None:
            return self._connect_development_server(dev, join_key)
        return self.select_endpoint(_to_endpoints(endpoints), join_key)

    def _connect_development_server(self, dev: DevelopmentServer, join_key: str) -> Connection:
        endpoint = Endpoint(dev.address, dev.port)
        try:
            return self._open(endpoint, join_key)
        except (ResolutionError, ConnectionError) as e:
            raise NoReachableEndpointError(
                [endpoint], f"Unable to join room - development server {dev} is not reachable: {e}"
            ) from e

    def select_endpoint(self, endpoints: list[Endpoint], join_key: str) -> Connection:
        """Connect to the first reachable endpoint, in the given order.

        Each candidate is probed by address with the configured probe policy;
        only a candidate that answers is resolved and connected to. A
        candidate that probes open but then fails to resolve or connect is
        skipped like an unreachable one.

        Raises:
            NoReachableEndpointError: If the list is empty or exhausted.
        """
        if not endpoints:
            logger.warning("Backend returned no endpoints")
            raise NoReachableEndpointError()

        policy = self._config.probe_policy
        for endpoint in endpoints:
            if not policy.check(endpoint):
                logger.info("Endpoint %s is not reachable, trying next", endpoint)
                continue
            try:
                return self._open(endpoint, join_key)
            except (ResolutionError, ConnectionError) as e:
                logger.warning("Endpoint %s probed open but connecting failed: %s", endpoint, e)

        raise NoReachableEndpointError(endpoints)

    def _open(self, endpoint: Endpoint, join_key: str) -> Connection:
        resolved = resolve_endpoint(endpoint)
        logger.info("Joining room via %s (%s)", endpoint, resolved)
        return Connection(
            resolved,
            join_key,
            secure=self._config.use_secure_connections,
            server_hostname=endpoint.address,
            timeout=self._config.rpc_timeout,
        )


def _to_endpoints(endpoints: list[ServerEndpoint]) -> list[Endpoint]:
    result: list[Endpoint] = []
    for candidate in endpoints:
        try:
            result.append(Endpoint(candidate.address, candidate.port))
        except ValueError as e:
            logger.warning("Ignoring invalid endpoint %s:%s: %s", candidate.address, candidate.port, e)
    return result
