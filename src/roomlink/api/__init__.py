"""Binary RPC layer for the room backend control channel."""

from roomlink.api.channel import RpcChannel
from roomlink.api.codec import MessageCodec, MessageDecodeError
from roomlink.api.protocol import (
    OP_CREATE_JOIN_ROOM,
    OP_CREATE_ROOM,
    OP_JOIN_ROOM,
    ApplicationError,
    ErrorCode,
    RoomLinkError,
    RpcError,
    RpcRequest,
    RpcResult,
    TransportError,
)

__all__ = [
    "RpcChannel",
    "MessageCodec",
    "MessageDecodeError",
    "OP_CREATE_ROOM",
    "OP_JOIN_ROOM",
    "OP_CREATE_JOIN_ROOM",
    "ApplicationError",
    "ErrorCode",
    "RoomLinkError",
    "RpcError",
    "RpcRequest",
    "RpcResult",
    "TransportError",
]
