"""Request and response records for the room operations.

Each field carries a small integer wire tag in its metadata; the codec
serializes records as maps keyed by these tags.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def tag(number: int, **kwargs: Any) -> Any:
    """Declare a dataclass field with a wire tag."""
    return field(metadata={"tag": number}, **kwargs)


@dataclass(frozen=True)
class KeyValuePair:
    """A single entry of room or join data."""

    key: str = tag(1)
    value: str = tag(2)


def to_pairs(data: Mapping[str, str] | None) -> list[KeyValuePair]:
    """Convert a mapping into wire key/value pairs, preserving order."""
    if not data:
        return []
    return [KeyValuePair(key=str(k), value=str(v)) for k, v in data.items()]


def from_pairs(pairs: list[KeyValuePair]) -> dict[str, str]:
    """Convert wire key/value pairs back into a dict."""
    return {p.key: p.value for p in pairs}


@dataclass(frozen=True)
class ServerEndpoint:
    """A game server address advertised by the backend."""

    address: str = tag(1)
    port: int = tag(2)


@dataclass(frozen=True)
class Error:
    """Error record sent by the backend for a rejected request."""

    error_code: int = tag(1, default=1)
    message: str = tag(2, default="")


@dataclass(frozen=True)
class CreateRoomArgs:
    room_id: str = tag(1)
    room_type: str = tag(2)
    visible: bool = tag(3, default=True)
    room_data: list[KeyValuePair] = tag(4, default_factory=list)
    is_dev_room: bool = tag(5, default=False)


@dataclass(frozen=True)
class CreateRoomOutput:
    room_id: str = tag(1, default="")


@dataclass(frozen=True)
class JoinRoomArgs:
    room_id: str = tag(1)
    join_data: list[KeyValuePair] = tag(2, default_factory=list)
    is_dev_room: bool = tag(3, default=False)


@dataclass(frozen=True)
class JoinRoomOutput:
    join_key: str = tag(1, default="")
    endpoints: list[ServerEndpoint] = tag(2, default_factory=list)


@dataclass(frozen=True)
class CreateJoinRoomArgs:
    room_id: str = tag(1)
    server_type: str = tag(2)
    visible: bool = tag(3, default=True)
    room_data: list[KeyValuePair] = tag(4, default_factory=list)
    join_data: list[KeyValuePair] = tag(5, default_factory=list)
    is_dev_room: bool = tag(6, default=False)


@dataclass(frozen=True)
class CreateJoinRoomOutput:
    room_id: str = tag(1, default="")
    join_key: str = tag(2, default="")
    endpoints: list[ServerEndpoint] = tag(3, default_factory=list)
