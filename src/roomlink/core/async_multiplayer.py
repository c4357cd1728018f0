"""Awaitable wrapper around Multiplayer.

Each call runs the blocking operation in a worker thread. Endpoint selection
stays sequential; only the caller stops blocking the event loop.
"""

import asyncio
from collections.abc import Mapping

from roomlink.core.config import MultiplayerConfig
from roomlink.core.connection import Connection
from roomlink.core.multiplayer import Multiplayer


class AsyncMultiplayer:
    """Async facade over a Multiplayer instance.

    Example:
        multiplayer = AsyncMultiplayer(Multiplayer(channel))
        connection = await multiplayer.create_join_room("lobby", "bounce")
    """

    def __init__(self, multiplayer: Multiplayer) -> None:
        self._multiplayer = multiplayer

    @property
    def config(self) -> MultiplayerConfig:
        """Return the wrapped client's configuration."""
        return self._multiplayer.config

    async def create_room(
        self,
        room_id: str | None,
        room_type: str,
        visible: bool = True,
        room_data: Mapping[str, str] | None = None,
    ) -> str:
        """See Multiplayer.create_room."""
        return await asyncio.to_thread(self._multiplayer.create_room, room_id, room_type, visible, room_data)

    async def join_room(self, room_id: str, join_data: Mapping[str, str] | None = None) -> Connection:
        """See Multiplayer.join_room."""
        return await asyncio.to_thread(self._multiplayer.join_room, room_id, join_data)

    async def create_join_room(
        self,
        room_id: str,
        room_type: str,
        visible: bool = True,
        room_data: Mapping[str, str] | None = None,
        join_data: Mapping[str, str] | None = None,
    ) -> Connection:
        """See Multiplayer.create_join_room."""
        return await asyncio.to_thread(
            self._multiplayer.create_join_room, room_id, room_type, visible, room_data, join_data
        )
