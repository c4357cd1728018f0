"""Message codec: tagged dataclass records <-> msgpack bytes.

Records are encoded as msgpack maps keyed by each field's integer tag, so the
wire shape only depends on the tags, never on Python attribute names. Unknown
tags are ignored when decoding.
"""

import logging
from dataclasses import fields, is_dataclass
from typing import Any, TypeVar, get_args, get_origin, get_type_hints

import msgpack

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SCALARS: tuple[type, ...] = (str, int, float, bool, bytes)


class MessageDecodeError(ValueError):
    """Payload could not be decoded into the requested record type."""


def _to_wire(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {f.metadata["tag"]: _to_wire(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list | tuple):
        return [_to_wire(item) for item in value]
    return value


def _from_wire(target: Any, value: Any) -> Any:
    if is_dataclass(target):
        if not isinstance(value, dict):
            raise MessageDecodeError(f"Expected map for {target.__name__}, got {type(value).__name__}")
        hints = get_type_hints(target)
        kwargs: dict[str, Any] = {}
        for f in fields(target):
            wire_tag = f.metadata["tag"]
            if wire_tag in value:
                kwargs[f.name] = _from_wire(hints[f.name], value[wire_tag])
        try:
            return target(**kwargs)
        except TypeError as e:
            raise MessageDecodeError(f"Incomplete {target.__name__}: {e}") from e

    if get_origin(target) is list:
        if not isinstance(value, list):
            raise MessageDecodeError(f"Expected array, got {type(value).__name__}")
        (item_type,) = get_args(target)
        return [_from_wire(item_type, item) for item in value]

    if target in _SCALARS:
        # ints may arrive where floats are declared
        if target is float and isinstance(value, int):
            return float(value)
        if not isinstance(value, target):
            raise MessageDecodeError(f"Expected {target.__name__}, got {type(value).__name__}")
        return value

    return value


class MessageCodec:
    """Encode and decode tagged records with msgpack.

    Example:
        codec = MessageCodec()
        data = codec.encode(JoinRoomArgs(room_id="lobby"))
        args = codec.decode(JoinRoomArgs, data)
    """

    name = "msgpack"

    def encode(self, record: Any) -> bytes:
        """Serialize a tagged dataclass instance."""
        if not (is_dataclass(record) and not isinstance(record, type)):
            raise TypeError(f"Can only encode dataclass records, got {type(record).__name__}")
        return msgpack.packb(_to_wire(record), use_bin_type=True)

    def decode(self, record_type: type[T], data: bytes) -> T:
        """Deserialize bytes into an instance of record_type.

        Raises:
            MessageDecodeError: If the bytes are not valid msgpack or don't
                match the record shape.
        """
        try:
            raw = msgpack.unpackb(data, raw=False, strict_map_key=False)
        except (ValueError, TypeError) as e:
            raise MessageDecodeError(f"Invalid payload for {record_type.__name__}: {e}") from e
        return _from_wire(record_type, raw)
